import pytest

from keyhop.routes import Route, RouteGroup, RouteKind, classify_path


def test_existing_absolute_path_is_internal(tmp_path):
    program = tmp_path / "program"
    program.write_text("")
    assert program.is_absolute()
    assert classify_path(str(program)) is RouteKind.INTERNAL


def test_existing_relative_path_is_internal(tmp_path, monkeypatch):
    (tmp_path / "program").write_text("")
    monkeypatch.chdir(tmp_path)
    route = Route.from_config("./program")
    assert route.kind is RouteKind.INTERNAL
    assert route.path == "./program"


def test_urls_are_external():
    assert Route.from_config("http://google.com").kind is RouteKind.EXTERNAL
    assert Route.from_config("https://google.com").kind is RouteKind.EXTERNAL


def test_bare_string_uses_defaults():
    route = Route.from_config("https://example.com/{{query}}")
    assert route == Route(kind=RouteKind.EXTERNAL, path="https://example.com/{{query}}")
    assert route.hidden is False
    assert route.description is None
    assert route.min_args is None
    assert route.max_args is None


def test_mapping_reads_all_fields():
    route = Route.from_config(
        {
            "path": "https://example.com",
            "hidden": True,
            "description": "Example",
            "min_args": 1,
            "max_args": 2,
        }
    )
    assert route.hidden is True
    assert route.description == "Example"
    assert (route.min_args, route.max_args) == (1, 2)


def test_min_greater_than_max_is_rejected():
    with pytest.raises(ValueError, match="min_args"):
        Route(kind=RouteKind.EXTERNAL, path="x", min_args=3, max_args=2)


def test_equal_bounds_are_allowed():
    route = Route(kind=RouteKind.EXTERNAL, path="x", min_args=2, max_args=2)
    assert route.min_args == route.max_args == 2


@pytest.mark.parametrize(
    "value",
    [
        {"description": "no path"},
        {"path": 12},
        {"path": "x", "min_args": -1},
        {"path": "x", "max_args": "3"},
        {"path": "x", "max_args": True},
        {"path": "x", "hidden": "yes"},
        ["x"],
    ],
)
def test_invalid_route_values_are_rejected(value):
    with pytest.raises(ValueError):
        Route.from_config(value)


def test_display_names_kind():
    assert str(Route(kind=RouteKind.EXTERNAL, path="https://a")) == "raw (https://a)"
    assert str(Route(kind=RouteKind.INTERNAL, path="/bin/a")) == "file (/bin/a)"


def test_group_routes_are_read_only():
    group = RouteGroup(name="g", routes={"a": Route(kind=RouteKind.EXTERNAL, path="b")})
    with pytest.raises(TypeError):
        group.routes["c"] = Route(kind=RouteKind.EXTERNAL, path="d")


def test_group_from_config_reports_failing_route():
    with pytest.raises(ValueError, match="'bad'"):
        RouteGroup.from_config({"name": "g", "routes": {"bad": {"path": "x", "min_args": 2, "max_args": 1}}})


def test_visible_routes_skip_hidden_entries():
    group = RouteGroup.from_config(
        {
            "name": "g",
            "routes": {
                "shown": "https://a",
                "secret": {"path": "https://b", "hidden": True},
            },
        }
    )
    assert list(group.visible_routes()) == ["shown"]

    hidden_group = RouteGroup.from_config({"name": "h", "hidden": True, "routes": {"x": "https://c"}})
    assert hidden_group.visible_routes() == {}


def test_group_from_config_rejects_non_string_keywords():
    with pytest.raises(ValueError, match="must be a string"):
        RouteGroup.from_config({"name": "g", "routes": {False: "https://nrk.no"}})

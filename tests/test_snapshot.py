import threading

import pytest

from keyhop.config import parse_config
from keyhop.index import build_route_index
from keyhop.resolver import Resolved, resolve_hop
from keyhop.routes import Route, RouteGroup, RouteKind
from keyhop.snapshot import Snapshot, SnapshotStore


def _snapshot(marker: str, keywords: int = 50) -> Snapshot:
    routes = {f"k{i}": Route(kind=RouteKind.EXTERNAL, path=f"https://{marker}/{i}") for i in range(keywords)}
    return Snapshot.from_groups(
        public_address=marker,
        default_route="k0",
        groups=(RouteGroup(name=marker, routes=routes),),
    )


def test_snapshot_routes_are_derived_from_groups():
    config = parse_config(
        "bind_address: a\npublic_address: b\ndefault_route: x\n"
        "groups:\n"
        "  - name: one\n    routes: {x: 'https://1', y: 'https://y'}\n"
        "  - name: two\n    routes: {x: 'https://2'}\n"
    )
    snapshot = Snapshot.from_config(config)

    assert snapshot.public_address == "b"
    assert snapshot.default_route == "x"
    assert snapshot.groups == config.groups
    assert dict(snapshot.routes) == build_route_index(config.groups)
    assert snapshot.routes["x"].path == "https://2"


def test_snapshot_is_immutable():
    snapshot = _snapshot("one")
    with pytest.raises(AttributeError):
        snapshot.public_address = "two"
    with pytest.raises(TypeError):
        snapshot.routes["new"] = Route(kind=RouteKind.EXTERNAL, path="x")


def test_publish_replaces_current():
    first = _snapshot("one")
    second = _snapshot("two")
    store = SnapshotStore(first)
    assert store.current() is first
    assert store.generation == 0

    assert store.publish(second) == 1
    assert store.current() is second
    assert store.generation == 1


def test_reader_keeps_old_snapshot_after_publish():
    store = SnapshotStore(_snapshot("one"))
    held = store.current()

    store.publish(_snapshot("two", keywords=3))

    assert held.public_address == "one"
    assert len(held.routes) == 50
    assert resolve_hop("k7 cats", held.routes, held.default_route).route.path == "https://one/7"
    assert store.current().public_address == "two"


def test_concurrent_readers_never_see_a_torn_snapshot():
    markers = [f"gen{i}" for i in range(40)]
    store = SnapshotStore(_snapshot("start"))
    stop = threading.Event()
    failures = []

    def reader():
        while not stop.is_set():
            snapshot = store.current()
            marker = snapshot.public_address
            result = resolve_hop("k3 a b", snapshot.routes, snapshot.default_route)
            if not isinstance(result, Resolved) or result.route.path != f"https://{marker}/3":
                failures.append((marker, result))
            if snapshot.groups[0].name != marker:
                failures.append((marker, snapshot.groups[0].name))

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for thread in readers:
        thread.start()

    def writer(chunk):
        for marker in chunk:
            store.publish(_snapshot(marker))

    writers = [threading.Thread(target=writer, args=(markers[i::2],)) for i in range(2)]
    for thread in writers:
        thread.start()
    for thread in writers:
        thread.join()

    stop.set()
    for thread in readers:
        thread.join()

    assert failures == []
    assert store.generation == len(markers)
    assert store.current().public_address in markers

import logging

import pytest

from keyhop import cli
from keyhop.index import TRACE


@pytest.mark.parametrize(
    "verbose, quiet, expected",
    [
        (0, 0, logging.WARNING),
        (1, 0, logging.INFO),
        (2, 0, logging.DEBUG),
        (3, 0, TRACE),
        (9, 0, TRACE),
        (0, 1, logging.ERROR),
        (0, 2, None),
        (0, 5, None),
    ],
)
def test_log_level_from_flags(verbose, quiet, expected):
    assert cli.log_level(verbose, quiet) == expected


def test_verbose_and_quiet_are_exclusive():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["-v", "-q"])


def test_parser_reads_flags():
    args = cli.build_parser().parse_args(["-vv", "-c", "/tmp/keyhop.yaml", "--large-config"])
    assert args.verbose == 2
    assert args.quiet == 0
    assert args.config == "/tmp/keyhop.yaml"
    assert args.large_config is True


def test_split_bind_address():
    assert cli.split_bind_address("127.0.0.1:8080") == ("127.0.0.1", 8080)
    assert cli.split_bind_address("[::1]:9000") == ("::1", 9000)
    with pytest.raises(ValueError):
        cli.split_bind_address("localhost")
    with pytest.raises(ValueError):
        cli.split_bind_address("localhost:http")


def test_missing_custom_config_is_fatal(tmp_path):
    assert cli.main(["-qq", "-c", str(tmp_path / "missing.yaml")]) == 1


def test_empty_config_is_fatal(tmp_path):
    path = tmp_path / "keyhop.yaml"
    path.write_bytes(b"")
    assert cli.main(["-qq", "-c", str(path)]) == 1


def test_main_serves_loaded_config(tmp_path, monkeypatch):
    path = tmp_path / "keyhop.yaml"
    path.write_text(
        "bind_address: '127.0.0.1:9999'\npublic_address: 'localhost:9999'\ngroups: []\n"
    )
    served = {}

    def _fake_run(self, host=None, port=None, **kwargs):
        served.update(host=host, port=port, threaded=kwargs.get("threaded"))
        served["store"] = self.config["HOP_SNAPSHOT_STORE"]

    monkeypatch.setattr("flask.Flask.run", _fake_run)
    assert cli.main(["-qq", "-c", str(path)]) == 0
    assert served["host"] == "127.0.0.1"
    assert served["port"] == 9999
    assert served["threaded"] is True
    assert served["store"].current().public_address == "localhost:9999"

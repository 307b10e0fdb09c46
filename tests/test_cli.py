import json

import pytest
from typer.testing import CliRunner

from batchfetch.adapters.cli import fetch as fetch_module
from batchfetch.adapters.cli.app import app
from batchfetch.adapters.cli.prompts import RichPromptProvider
from batchfetch.adapters.config import loader as loader_module
from batchfetch.core.constants import EXIT_FATAL, EXIT_PARTIAL_FAILURE
from batchfetch.core.exceptions import ConfigError

runner = CliRunner()


@pytest.fixture(autouse=True)
def wiring(monkeypatch, factory):
    def missing(hostname, config_path=None):
        raise ConfigError("no ssh config")

    monkeypatch.setattr(loader_module, "load_ssh_config", missing)
    monkeypatch.setattr(fetch_module, "RemoteConnectionFactory", lambda: factory)
    monkeypatch.setattr(
        RichPromptProvider,
        "prompt",
        lambda self, message, default=None, password=False: "s3cret",
    )
    for name in loader_module.ConfigLoader.ENV_MAPPINGS:
        monkeypatch.delenv(name, raising=False)


def _invoke(tmp_path, lines, *extra):
    listing = tmp_path / "paths.txt"
    listing.write_text("\n".join(lines) + "\n")
    args = ["fetch", str(listing), "-H", "example.org", "-u", "u", "-o", str(tmp_path / "out"), *extra]
    return runner.invoke(app, args)


def test_all_fetched_exits_zero(tmp_path, factory):
    result = _invoke(tmp_path, ["/home/u/a.txt", "", "/home/u/b.txt"])

    assert result.exit_code == 0, result.output
    assert "Fetched 2/2" in result.output
    assert (tmp_path / "out" / "home" / "u" / "a.txt").exists()
    assert factory.create_count == 1


def test_partial_failure_exits_nonzero(tmp_path):
    result = _invoke(tmp_path, ["/home/u/a.txt", "/var/missing.txt"])

    assert result.exit_code == EXIT_PARTIAL_FAILURE
    assert "Fetched 1/2" in result.output
    assert (tmp_path / "out" / "home" / "u" / "a.txt").exists()


def test_bad_password_is_fatal(tmp_path, monkeypatch, factory):
    monkeypatch.setattr(
        RichPromptProvider,
        "prompt",
        lambda self, message, default=None, password=False: "wrong",
    )

    result = _invoke(tmp_path, ["/home/u/a.txt"])

    assert result.exit_code == EXIT_FATAL
    assert factory.clients == []


def test_missing_list_file_is_fatal(tmp_path):
    result = runner.invoke(app, ["fetch", str(tmp_path / "nope.txt"), "-H", "h", "-u", "u"])

    assert result.exit_code == EXIT_FATAL


def test_empty_list_exits_zero_without_connecting(tmp_path, factory):
    result = _invoke(tmp_path, ["", "  "])

    assert result.exit_code == 0
    assert factory.create_count == 0


def test_json_report(tmp_path):
    report_path = tmp_path / "report.json"
    result = _invoke(tmp_path, ["/home/u/a.txt", "/nope"], "--flat", "--report", str(report_path))

    assert result.exit_code == EXIT_PARTIAL_FAILURE
    data = json.loads(report_path.read_text())
    assert data["total"] == 2
    assert data["succeeded"] == 1
    assert [o["remote_path"] for o in data["outcomes"]] == ["/home/u/a.txt", "/nope"]
    assert (tmp_path / "out" / "a.txt").exists()

# tests/test_cli.py
"""
Unit tests for the mixsched Command-Line Interface (CLI).
"""

from typer.testing import CliRunner

from mixsched import __version__
from mixsched.cli import app

runner = CliRunner()


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"mixsched version: {__version__}" in result.stdout


def test_version_option():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_settings_prints_resolved_defaults(monkeypatch):
    monkeypatch.setenv("ONDEMAND_NODE_WEIGHT", "4")

    result = runner.invoke(app, ["settings"])

    assert result.exit_code == 0
    assert "on_demand_weight: 4" in result.stdout
    assert "spot_weight: 10" in result.stdout
    assert "excluded_namespaces: kube-system,mix-scheduler-system" in result.stdout


def test_settings_invalid_configuration(monkeypatch):
    monkeypatch.setenv("SPOT_NODE_WEIGHT", "lots")

    result = runner.invoke(app, ["settings"])

    assert result.exit_code == 1


def test_start_runs_server(mocker):
    serve = mocker.patch("mixsched.cli.start.serve")

    result = runner.invoke(app, ["start", "--port", "9443", "--cert-file", "/tmp/c.crt", "--key-file", "/tmp/c.key"])

    assert result.exit_code == 0
    serve.assert_called_once_with(host=None, port=9443, cert_file="/tmp/c.crt", key_file="/tmp/c.key")


def test_start_invalid_configuration_exits(mocker, monkeypatch):
    serve = mocker.patch("mixsched.cli.start.serve")
    monkeypatch.setenv("PORT", "-1")

    result = runner.invoke(app, ["start"])

    assert result.exit_code == 1
    serve.assert_not_called()


def test_start_startup_failure_exits(mocker):
    mocker.patch("mixsched.cli.start.serve", side_effect=OSError("address in use"))

    result = runner.invoke(app, ["start"])

    assert result.exit_code == 1

"""Unit tests for the command-line entry point."""

from openvoice_gateway import cli


def test_flags_override_environment(monkeypatch):
    captured = {}
    monkeypatch.setenv("PORT", "3001")
    monkeypatch.setattr(cli, "run", lambda config: captured.setdefault("config", config))
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)

    assert cli.main(["--host", "127.0.0.1", "--port", "9000", "--log-level", "debug"]) == 0

    config = captured["config"]
    assert config.host == "127.0.0.1"
    assert config.port == 9000
    assert config.log_level == "DEBUG"


def test_invalid_log_level(monkeypatch):
    monkeypatch.setattr(cli, "run", lambda config: None)

    assert cli.main(["--log-level", "chatty"]) == 2

import logging

import pytest

from healthz_pinger.config import (
    DEFAULT_CADENCE,
    DEFAULT_ENDPOINT,
    RUN_MODE_ONCE,
    RUN_MODE_SCHEDULE,
    load_config,
)
from healthz_pinger.logger import _BelowWarning

ENV_VARS = ("API_ENDPOINT", "API_KEY", "PINGER_CADENCE", "PINGER_RUN_MODE", "DEBUG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_config_file(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"))

    assert config.probe.endpoint == DEFAULT_ENDPOINT
    assert config.probe.endpoint == "https://mailerservice-y32x.onrender.com/healthz"
    assert config.probe.api_key == ""
    assert config.schedule.cadence == DEFAULT_CADENCE
    assert config.schedule.run_mode == RUN_MODE_SCHEDULE
    assert config.debug_level == "INFO"


def test_values_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "PROBE:\n"
        "  ENDPOINT: https://status.example.test/healthz\n"
        "  API_KEY: abc\n"
        "SCHEDULE:\n"
        "  CADENCE: '*/30 * * * *'\n"
        "  RUN_MODE: once\n"
        "DEBUG_LEVEL: DEBUG\n"
    )

    config = load_config(str(config_file))

    assert config.probe.endpoint == "https://status.example.test/healthz"
    assert config.probe.api_key == "abc"
    assert config.schedule.cadence == "*/30 * * * *"
    assert config.schedule.run_mode == RUN_MODE_ONCE
    assert config.debug_level == "DEBUG"


def test_environment_overrides_yaml(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("PROBE:\n  ENDPOINT: https://from-file.test/healthz\n")
    monkeypatch.setenv("API_ENDPOINT", "https://from-env.test/healthz")
    monkeypatch.setenv("API_KEY", "token")
    monkeypatch.setenv("PINGER_RUN_MODE", "ONCE")

    config = load_config(str(config_file))

    assert config.probe.endpoint == "https://from-env.test/healthz"
    assert config.probe.api_key == "token"
    assert config.schedule.run_mode == RUN_MODE_ONCE


def test_blank_endpoint_falls_back_to_default(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("PROBE:\n  ENDPOINT: ''\n")
    monkeypatch.setenv("API_ENDPOINT", "   ")

    config = load_config(str(config_file))

    assert config.probe.endpoint == DEFAULT_ENDPOINT


def test_unknown_run_mode_falls_back_to_schedule(tmp_path, monkeypatch, caplog):
    monkeypatch.setenv("PINGER_RUN_MODE", "sometimes")

    config = load_config(str(tmp_path / "missing.yaml"))

    assert config.schedule.run_mode == RUN_MODE_SCHEDULE
    assert "Unknown run mode" in caplog.text


def test_stdout_filter_keeps_only_informational_records():
    below = _BelowWarning()

    def record(level):
        return logging.LogRecord("t", level, __file__, 1, "msg", None, None)

    assert below.filter(record(logging.INFO))
    assert below.filter(record(logging.DEBUG))
    assert not below.filter(record(logging.WARNING))
    assert not below.filter(record(logging.ERROR))

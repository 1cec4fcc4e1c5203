from __future__ import annotations

import pytest

from farmtractor.config import PollingSettings, load_config

_VARIABLES = (
    "MODE",
    "LOG_LEVEL",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "AWS_PROFILE",
    "AWS_REGION",
    "UPLOAD_POLL_INTERVAL",
    "UPLOAD_MAX_ATTEMPTS",
    "RUN_POLL_INTERVAL",
    "ARTIFACT_SETTLE_DELAY",
    "REQUEST_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in _VARIABLES:
        monkeypatch.delenv(f"FARMTRACTOR_{name}", raising=False)


def test_defaults_without_environment() -> None:
    config = load_config()

    assert config.is_real and not config.is_demo
    assert config.log_level == "INFO"
    assert config.polling == PollingSettings()
    assert config.polling.upload_poll_interval == 2.0
    assert config.polling.upload_max_attempts == 3600
    assert config.polling.run_poll_interval == 10.0
    assert config.polling.artifact_settle_delay == 20.0
    assert config.aws.region == ""


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("FARMTRACTOR_MODE", " Demo ")
    monkeypatch.setenv("FARMTRACTOR_LOG_LEVEL", "debug")
    monkeypatch.setenv("FARMTRACTOR_AWS_ACCESS_KEY_ID", "AKIA")
    monkeypatch.setenv("FARMTRACTOR_AWS_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setenv("FARMTRACTOR_AWS_PROFILE", "ci")
    monkeypatch.setenv("FARMTRACTOR_AWS_REGION", "us-west-2")
    monkeypatch.setenv("FARMTRACTOR_UPLOAD_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("FARMTRACTOR_UPLOAD_MAX_ATTEMPTS", "12")
    monkeypatch.setenv("FARMTRACTOR_ARTIFACT_SETTLE_DELAY", "0")

    config = load_config()

    assert config.is_demo
    assert config.log_level == "DEBUG"
    assert config.aws.access_key_id == "AKIA"
    assert config.aws.profile_name == "ci"
    assert config.aws.region == "us-west-2"
    assert config.polling.upload_poll_interval == 0.5
    assert config.polling.upload_max_attempts == 12
    assert config.polling.artifact_settle_delay == 0.0


def test_invalid_values_keep_defaults(monkeypatch) -> None:
    monkeypatch.setenv("FARMTRACTOR_MODE", "staging")
    monkeypatch.setenv("FARMTRACTOR_RUN_POLL_INTERVAL", "soon")
    monkeypatch.setenv("FARMTRACTOR_UPLOAD_MAX_ATTEMPTS", "many")
    monkeypatch.setenv("FARMTRACTOR_REQUEST_TIMEOUT", "   ")

    config = load_config()

    assert config.mode == "real"
    assert config.polling.run_poll_interval == 10.0
    assert config.polling.upload_max_attempts == 3600
    assert config.polling.request_timeout == 300.0


def test_numbers_are_clamped(monkeypatch) -> None:
    monkeypatch.setenv("FARMTRACTOR_RUN_POLL_INTERVAL", "-3")
    monkeypatch.setenv("FARMTRACTOR_UPLOAD_MAX_ATTEMPTS", "0")

    config = load_config()

    assert config.polling.run_poll_interval == 0.0
    assert config.polling.upload_max_attempts == 1


@pytest.mark.parametrize("raw", ["0", "-5", "0.0"])
def test_request_timeout_must_be_positive(monkeypatch, raw: str) -> None:
    monkeypatch.setenv("FARMTRACTOR_REQUEST_TIMEOUT", raw)

    assert load_config().polling.request_timeout == 300.0

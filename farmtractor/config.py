from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

ENV_PREFIX = "FARMTRACTOR_"


@dataclass(slots=True)
class AwsSettings:
    """Credential and region selection for the Device Farm client."""

    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: str = ""
    profile_name: str = ""
    region: str = ""


@dataclass(slots=True)
class PollingSettings:
    """Spacing and bounds of the remote polling loops."""

    upload_poll_interval: float = 2.0
    upload_max_attempts: int = 3_600
    run_poll_interval: float = 10.0
    artifact_settle_delay: float = 20.0
    request_timeout: float = 300.0


@dataclass(slots=True)
class TractorConfig:
    """Configuration values consumed by the runner factory and the CLI."""

    mode: str = "real"
    log_level: str = "INFO"
    aws: AwsSettings = field(default_factory=AwsSettings)
    polling: PollingSettings = field(default_factory=PollingSettings)

    @property
    def is_demo(self) -> bool:
        return self.mode == "demo"

    @property
    def is_real(self) -> bool:
        return self.mode == "real"


def _env(name: str, prefix: str = ENV_PREFIX) -> Optional[str]:
    value = os.getenv(f"{prefix}{name}")
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        return default


def _parse_positive_float(name: str, default: float) -> float:
    value = _parse_float(name, default)
    return value if value > 0 else default


def _parse_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        return default


def _parse_aws_settings() -> AwsSettings:
    return AwsSettings(
        access_key_id=_env("AWS_ACCESS_KEY_ID") or "",
        secret_access_key=_env("AWS_SECRET_ACCESS_KEY") or "",
        session_token=_env("AWS_SESSION_TOKEN") or "",
        profile_name=_env("AWS_PROFILE") or "",
        region=_env("AWS_REGION") or "",
    )


def _parse_polling_settings() -> PollingSettings:
    defaults = PollingSettings()
    return PollingSettings(
        upload_poll_interval=_parse_float("UPLOAD_POLL_INTERVAL", defaults.upload_poll_interval),
        upload_max_attempts=_parse_int("UPLOAD_MAX_ATTEMPTS", defaults.upload_max_attempts),
        run_poll_interval=_parse_float("RUN_POLL_INTERVAL", defaults.run_poll_interval),
        artifact_settle_delay=_parse_float("ARTIFACT_SETTLE_DELAY", defaults.artifact_settle_delay),
        request_timeout=_parse_positive_float("REQUEST_TIMEOUT", defaults.request_timeout),
    )


def load_config() -> TractorConfig:
    """Load tractor configuration from ``FARMTRACTOR_*`` environment variables."""

    mode = (_env("MODE") or "real").lower()
    if mode not in {"real", "demo"}:
        mode = "real"
    log_level = (_env("LOG_LEVEL") or "INFO").upper()

    return TractorConfig(
        mode=mode,
        log_level=log_level,
        aws=_parse_aws_settings(),
        polling=_parse_polling_settings(),
    )

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    return float(value)


@dataclass
class Settings:
    S3_BUCKET: str | None = None
    S3_KEY_PREFIX: str = ""
    S3_ENDPOINT_URL: str | None = None
    S3_REGION: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str = "path"
    CONFIRM_ON_CREATE: bool = True
    CONFIRM_TIMEOUT: float = 5.0
    CONFIRM_INTERVAL: float = 0.5
    ENABLE_METRICS: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    def __post_init__(self) -> None:
        if self.CONFIRM_TIMEOUT <= 0:
            raise ValueError("CONFIRM_TIMEOUT must be a positive number of seconds.")
        if self.CONFIRM_INTERVAL <= 0:
            raise ValueError("CONFIRM_INTERVAL must be a positive number of seconds.")
        if self.LOG_FORMAT not in {"json", "plain"}:
            raise ValueError("LOG_FORMAT must be either 'json' or 'plain'.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_BUCKET=os.environ.get("S3_BUCKET") or None,
            S3_KEY_PREFIX=os.environ.get("S3_KEY_PREFIX", cls.S3_KEY_PREFIX),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL") or None,
            S3_REGION=os.environ.get("S3_REGION") or None,
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID") or None,
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY") or None,
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            CONFIRM_ON_CREATE=_as_bool(
                os.environ.get("CONFIRM_ON_CREATE"), cls.CONFIRM_ON_CREATE
            ),
            CONFIRM_TIMEOUT=_as_float(
                os.environ.get("CONFIRM_TIMEOUT"), cls.CONFIRM_TIMEOUT
            ),
            CONFIRM_INTERVAL=_as_float(
                os.environ.get("CONFIRM_INTERVAL"), cls.CONFIRM_INTERVAL
            ),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
            LOG_FORMAT=os.environ.get("LOG_FORMAT", cls.LOG_FORMAT).lower(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()

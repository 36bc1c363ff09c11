from __future__ import annotations

import pytest

from castore.common import config
from castore.common.config import Settings, get_settings

ENV_KEYS = [
    "S3_BUCKET",
    "S3_KEY_PREFIX",
    "S3_ENDPOINT_URL",
    "S3_USE_SSL",
    "CONFIRM_ON_CREATE",
    "CONFIRM_TIMEOUT",
    "CONFIRM_INTERVAL",
    "ENABLE_METRICS",
    "LOG_LEVEL",
    "LOG_FORMAT",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config, "ENV_FILE", tmp_path / ".env")


def test_defaults():
    settings = Settings.from_environment()
    assert settings.S3_BUCKET is None
    assert settings.S3_KEY_PREFIX == ""
    assert settings.S3_USE_SSL is True
    assert settings.CONFIRM_ON_CREATE is True
    assert settings.CONFIRM_TIMEOUT == 5.0
    assert settings.CONFIRM_INTERVAL == 0.5
    assert settings.LOG_FORMAT == "json"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("S3_BUCKET", "objects")
    monkeypatch.setenv("S3_KEY_PREFIX", "c4")
    monkeypatch.setenv("S3_USE_SSL", "false")
    monkeypatch.setenv("CONFIRM_ON_CREATE", "no")
    monkeypatch.setenv("CONFIRM_TIMEOUT", "2.5")
    monkeypatch.setenv("CONFIRM_INTERVAL", "0.25")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "PLAIN")

    settings = Settings.from_environment()

    assert settings.S3_BUCKET == "objects"
    assert settings.S3_KEY_PREFIX == "c4"
    assert settings.S3_USE_SSL is False
    assert settings.CONFIRM_ON_CREATE is False
    assert settings.CONFIRM_TIMEOUT == 2.5
    assert settings.CONFIRM_INTERVAL == 0.25
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.LOG_FORMAT == "plain"


def test_env_file_does_not_override_environment(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text(
        "# comment\nS3_BUCKET='from-file'\nS3_KEY_PREFIX=\"pfx\"\nnot a pair\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("S3_BUCKET", "from-env")

    settings = Settings.from_environment()

    assert settings.S3_BUCKET == "from-env"
    assert settings.S3_KEY_PREFIX == "pfx"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"CONFIRM_TIMEOUT": 0},
        {"CONFIRM_INTERVAL": -1.0},
        {"LOG_FORMAT": "xml"},
    ],
)
def test_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        Settings(**kwargs)


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("S3_BUCKET", "first")
    first = get_settings()
    monkeypatch.setenv("S3_BUCKET", "second")
    assert get_settings() is first
    get_settings.cache_clear()  # type: ignore[attr-defined]
    assert get_settings().S3_BUCKET == "second"

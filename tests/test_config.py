from __future__ import annotations

import pytest

from filesearch.config import DEFAULT_MODEL, Settings, get_settings


def test_defaults_model_and_polling():
    settings = Settings(_env_file=None)
    assert settings.default_model == DEFAULT_MODEL == "gemini-2.5-flash"
    assert settings.poll_interval_seconds == 2.0
    assert settings.poll_timeout_seconds == 300.0
    assert settings.cache_ttl_seconds == 30.0
    assert settings.api_base_url is None
    assert settings.api_version == "v1beta"


@pytest.mark.parametrize("variable", ["FILESEARCH_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"])
def test_api_key_read_from_any_supported_variable(monkeypatch: pytest.MonkeyPatch, variable: str):
    for name in ("FILESEARCH_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv(variable, "from-env")

    assert Settings(_env_file=None).api_key == "from-env"


def test_prefixed_variables_override_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FILESEARCH_DEFAULT_MODEL", "gemini-2.5-pro")
    monkeypatch.setenv("FILESEARCH_POLL_TIMEOUT_SECONDS", "12.5")

    settings = Settings(_env_file=None)

    assert settings.default_model == "gemini-2.5-pro"
    assert settings.poll_timeout_seconds == 12.5


def test_override_does_not_touch_cache():
    settings = get_settings({"environment": "test", "api_key": "k"})
    assert settings.is_test
    assert settings.api_key == "k"
    assert get_settings() is get_settings()

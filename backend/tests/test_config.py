"""Tests for Pydantic Settings configuration."""

import pytest
from pydantic import ValidationError

from repro_trace.config import Settings, get_settings

ENV_KEYS = [
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "DEFAULT_MODEL",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TIMEOUT_MS",
    "RETRY_MAX_ATTEMPTS",
    "RETRY_BASE_DELAY_MS",
    "RETRY_JITTER_MS",
    "TRACE_DB_PATH",
    "SERVICE_NAME",
    "SERVICE_VERSION",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestSettingsDefaults:

    def test_all_defaults(self, clean_env):
        settings = Settings()
        assert settings.openai_api_key is None
        assert settings.openai_base_url is None
        assert settings.default_model == "gpt-4o-mini"
        assert settings.default_temperature == 0.7
        assert settings.default_max_tokens == 100
        assert settings.default_timeout_ms == 60_000
        assert settings.retry_max_attempts == 3
        assert settings.retry_base_delay_ms == 400
        assert settings.retry_jitter_ms == 150
        assert settings.trace_db_path == "debug_bundles.sqlite3"
        assert settings.service_name == "llm-repro-trace-kit"
        assert settings.service_version == "0.1.0"
        assert settings.log_level == "INFO"


class TestSettingsFromEnv:

    def test_reads_env_vars(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        clean_env.setenv("DEFAULT_MODEL", "gpt-4.1-mini")
        clean_env.setenv("DEFAULT_TIMEOUT_MS", "0")
        clean_env.setenv("TRACE_DB_PATH", "/tmp/traces.sqlite3")

        settings = Settings()
        assert settings.openai_api_key == "sk-test"
        assert settings.default_model == "gpt-4.1-mini"
        assert settings.default_timeout_ms == 0
        assert settings.trace_db_path == "/tmp/traces.sqlite3"

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("OPENAI_API_KEY=sk-from-file\n", encoding="utf-8")
        assert Settings().openai_api_key == "sk-from-file"

    def test_log_level_is_normalized(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "debug")
        assert Settings().log_level == "DEBUG"

    def test_invalid_log_level_rejected(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            Settings()

    def test_zero_attempts_rejected(self, clean_env):
        clean_env.setenv("RETRY_MAX_ATTEMPTS", "0")
        with pytest.raises(ValidationError):
            Settings()

    def test_negative_timeout_rejected(self, clean_env):
        clean_env.setenv("DEFAULT_TIMEOUT_MS", "-1")
        with pytest.raises(ValidationError):
            Settings()


class TestGetSettings:

    def test_cached_singleton(self, clean_env):
        assert get_settings() is get_settings()

    def test_cache_clear_picks_up_env(self, clean_env):
        first = get_settings()
        clean_env.setenv("SERVICE_VERSION", "9.9.9")
        get_settings.cache_clear()
        second = get_settings()
        assert first is not second
        assert second.service_version == "9.9.9"


class TestToDict:

    def test_api_key_is_masked(self, clean_env):
        data = Settings(openai_api_key="sk-secret").to_dict()
        assert data["openai_api_key"] == "***"
        assert "sk-secret" not in str(data)

    def test_missing_api_key_stays_none(self, clean_env):
        assert Settings().to_dict()["openai_api_key"] is None

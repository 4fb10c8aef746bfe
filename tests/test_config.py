import pytest

from config import Settings


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})

    assert settings.provider == "anthropic"
    assert settings.api_key is None
    assert settings.api_key_env == "ANTHROPIC_API_KEY"
    assert settings.model_name == "claude-sonnet-4-5-20250929"
    assert settings.cache_ttl_seconds == 3600
    assert settings.cache_sweep_threshold == 100
    assert settings.timeout == 40
    assert settings.port == 5000


def test_anthropic_key_is_read():
    settings = Settings.from_env({"ANTHROPIC_API_KEY": "sk-test", "ANTHROPIC_MODEL": "claude-x"})

    assert settings.has_api_key
    assert settings.model_name == "claude-x"


def test_gemini_provider_uses_its_own_variables():
    settings = Settings.from_env(
        {"ANALYZER_PROVIDER": "Gemini", "GEMINI_API_KEY": "g-key", "ANTHROPIC_API_KEY": "unused"}
    )

    assert settings.provider == "gemini"
    assert settings.api_key == "g-key"
    assert settings.api_key_env == "GEMINI_API_KEY"
    assert settings.model_name == "gemini-2.5-flash"


def test_empty_key_counts_as_missing():
    assert not Settings.from_env({"ANTHROPIC_API_KEY": ""}).has_api_key


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError):
        Settings.from_env({"ANALYZER_PROVIDER": "mystery"})


def test_numeric_overrides():
    settings = Settings.from_env(
        {"CACHE_TTL_SECONDS": "60", "CACHE_SWEEP_THRESHOLD": "5", "ANALYZER_TIMEOUT": "3.5", "LOG_LEVEL": "debug"}
    )

    assert settings.cache_ttl_seconds == 60
    assert settings.cache_sweep_threshold == 5
    assert settings.timeout == 3.5
    assert settings.log_level == "DEBUG"

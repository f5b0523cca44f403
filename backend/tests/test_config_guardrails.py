import pytest

from core import config as config_module


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    config_module.get_settings.cache_clear()
    yield
    config_module.get_settings.cache_clear()


def test_non_local_debug_mode_is_blocked(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("DEBUG", "true")

    with pytest.raises(ValueError, match="debug=true"):
        config_module.get_settings()


def test_unknown_reliability_policy_is_rejected(monkeypatch):
    monkeypatch.setenv("RELIABILITY_ZERO_POLICY", "zero")

    with pytest.raises(ValueError, match="reliability_zero_policy"):
        config_module.get_settings()


def test_unknown_sentiment_mode_is_rejected(monkeypatch):
    monkeypatch.setenv("SENTIMENT_MATCH", "regex")

    with pytest.raises(ValueError, match="sentiment_match"):
        config_module.get_settings()


def test_analytics_settings_from_environment(monkeypatch):
    monkeypatch.setenv("APP_ENV", "local")
    monkeypatch.setenv("RELIABILITY_ZERO_POLICY", "perfect")
    monkeypatch.setenv("COMPLETION_FALLBACK_DAYS", "21")
    monkeypatch.setenv("SENTIMENT_MATCH", "token")

    settings = config_module.get_settings()
    assert settings.reliability_zero_policy == "perfect"
    assert settings.completion_fallback_days == 21
    assert settings.sentiment_match == "token"
    assert settings.alert_window_days == 7

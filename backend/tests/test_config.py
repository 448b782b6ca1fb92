import logging

import pytest

from payment_receiver.core.config import Settings, get_settings


def test_defaults(monkeypatch):
    for name in ("PROVIDER_BASE_URL", "PROVIDER_API_KEY", "PROVIDER_WEBHOOK_SECRET", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.provider_base_url == "https://api.polar.sh/v1"
    assert settings.provider_api_key is None
    assert settings.provider_webhook_secret is None
    assert settings.environment == "production"
    assert settings.is_production is True


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("PROVIDER_BASE_URL", "https://sandbox-api.polar.sh/v1")
    monkeypatch.setenv("PROVIDER_API_KEY", "polar_key")
    monkeypatch.setenv("PROVIDER_WEBHOOK_SECRET", "whsec_env")
    monkeypatch.setenv("ENVIRONMENT", "development")

    settings = Settings(_env_file=None)

    assert settings.provider_base_url == "https://sandbox-api.polar.sh/v1"
    assert settings.provider_api_key == "polar_key"
    assert settings.provider_webhook_secret == "whsec_env"
    assert settings.is_production is False


@pytest.mark.parametrize("environment, expected", [("Production", True), ("prod", True), ("staging", False)])
def test_is_production(make_settings, environment, expected):
    assert make_settings(environment=environment).is_production is expected


def test_unverified_config_warns_outside_production(make_settings, caplog):
    with caplog.at_level(logging.WARNING, logger="payment_receiver.core.config"):
        make_settings(environment="development")

    messages = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert (logging.WARNING, "PROVIDER_WEBHOOK_SECRET is not set: webhook signatures will NOT be verified") in messages
    assert (logging.WARNING, "PROVIDER_API_KEY is not set: payments will NOT be confirmed with the provider") in messages


def test_unverified_config_is_an_error_in_production(make_settings, caplog):
    with caplog.at_level(logging.WARNING, logger="payment_receiver.core.config"):
        make_settings(environment="production", provider_api_key="polar_key")

    assert [r.levelno for r in caplog.records] == [logging.ERROR]
    assert "PROVIDER_WEBHOOK_SECRET" in caplog.records[0].getMessage()


def test_fully_configured_is_quiet(make_settings, caplog):
    with caplog.at_level(logging.WARNING, logger="payment_receiver.core.config"):
        make_settings(provider_api_key="polar_key", provider_webhook_secret="whsec_test")

    assert caplog.records == []


def test_get_settings_is_cached():
    assert get_settings() is get_settings()

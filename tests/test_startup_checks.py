import logging

import pytest

from education_api.config import Settings
from education_api.core.startup_checks import (
    DEFAULT_SECRET_KEY,
    check_email_config,
    check_secret_key,
    check_token_lifetimes,
    run_all_startup_checks,
)

GOOD_KEY = "k" * 48


def make_settings(**overrides):
    values = dict(
        SECRET_KEY=GOOD_KEY,
        SMTP_HOST="smtp.example.com",
        SMTP_USER="mailer",
        SMTP_PASSWORD="secret",
        EMAIL_FROM="noreply@example.com",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.mark.parametrize("key", [DEFAULT_SECRET_KEY, "too-short"])
def test_weak_secret_key_fails(key):
    assert check_secret_key(make_settings(SECRET_KEY=key)) is False


def test_weak_secret_key_is_an_error_in_production(caplog):
    with caplog.at_level(logging.WARNING):
        check_secret_key(make_settings(SECRET_KEY="too-short", ENVIRONMENT="production"))

    assert any(record.levelno == logging.ERROR for record in caplog.records)


def test_refresh_must_outlive_access():
    config = make_settings(ACCESS_TOKEN_EXPIRE_MINUTES=60, REFRESH_TOKEN_EXPIRE_MINUTES=30)
    assert check_token_lifetimes(config) is False


def test_missing_smtp_credentials_fail():
    assert check_email_config(make_settings(SMTP_PASSWORD="")) is False


def test_all_checks_pass_with_complete_config():
    assert run_all_startup_checks(make_settings()) is True

"""Startup validation checks for the application."""

import logging as log_module

from education_api.config import Settings, settings

logger = log_module.getLogger(__name__)

DEFAULT_SECRET_KEY = "change-this-secret-key-in-production"
MIN_SECRET_KEY_LENGTH = 32


def check_secret_key(config: Settings = settings) -> bool:
    """
    Check that the JWT signing key is not the default and is long enough for HS256.

    Returns:
        bool: True if the key is acceptable, False otherwise
    """
    logger.info("Checking JWT signing key...")
    report = logger.error if config.ENVIRONMENT == "production" else logger.warning

    if config.SECRET_KEY == DEFAULT_SECRET_KEY:
        report("SECRET_KEY is still the default value; set a random secret in .env")
        return False

    if len(config.SECRET_KEY) < MIN_SECRET_KEY_LENGTH:
        report(f"SECRET_KEY is shorter than {MIN_SECRET_KEY_LENGTH} characters")
        return False

    logger.info("JWT signing key configured")
    return True


def check_token_lifetimes(config: Settings = settings) -> bool:
    """
    Check that refresh tokens outlive access tokens and reset tokens stay short.

    Returns:
        bool: True if lifetimes are consistent, False otherwise
    """
    logger.info("Checking token lifetimes...")

    if config.REFRESH_TOKEN_EXPIRE_MINUTES <= config.ACCESS_TOKEN_EXPIRE_MINUTES:
        logger.error(
            f"REFRESH_TOKEN_EXPIRE_MINUTES ({config.REFRESH_TOKEN_EXPIRE_MINUTES}) must exceed "
            f"ACCESS_TOKEN_EXPIRE_MINUTES ({config.ACCESS_TOKEN_EXPIRE_MINUTES})"
        )
        return False

    if config.RESET_TOKEN_EXPIRE_MINUTES <= 0 or config.OTP_EXPIRE_MINUTES <= 0:
        logger.error("RESET_TOKEN_EXPIRE_MINUTES and OTP_EXPIRE_MINUTES must be positive")
        return False

    logger.info("Token lifetimes configured")
    return True


def check_email_config(config: Settings = settings) -> bool:
    """
    Check if SMTP credentials are set. One-time codes cannot be delivered without them.

    Returns:
        bool: True if email is configured, False otherwise
    """
    logger.info("Checking email configuration...")

    missing = [
        name
        for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "EMAIL_FROM")
        if not getattr(config, name)
    ]
    if missing:
        logger.warning(f"Email not configured, OTP emails will not be sent. Missing: {', '.join(missing)}")
        return False

    logger.info(f"Email configured: {config.SMTP_HOST}:{config.SMTP_PORT}")
    return True


def run_all_startup_checks(config: Settings = settings) -> bool:
    """
    Run all startup validation checks.

    Returns:
        bool: True if all checks pass, False otherwise
    """
    logger.info("Running startup validation checks...")

    checks = [
        ("Secret key", check_secret_key),
        ("Token lifetimes", check_token_lifetimes),
        ("Email", check_email_config),
    ]

    results = {name: check_func(config) for name, check_func in checks}

    for name, passed in results.items():
        logger.info(f"  {name}: {'PASS' if passed else 'FAIL'}")

    all_passed = all(results.values())
    if not all_passed:
        logger.warning("Some startup checks failed.")
    else:
        logger.info("All startup checks passed.")
    return all_passed

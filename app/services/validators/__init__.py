"""Credential policy validators."""

from app.core.config import settings

from .email import EmailValidator
from .password import PasswordStrength, PasswordValidator


def get_email_validator() -> EmailValidator:
    """Email validator configured from settings."""
    return EmailValidator(reject_disposable=settings.EMAIL_REJECT_DISPOSABLE)


def get_password_validator() -> PasswordValidator:
    """Password validator configured from settings."""
    return PasswordValidator(
        min_length=settings.PASSWORD_MIN_LENGTH,
        max_length=settings.PASSWORD_MAX_LENGTH,
        require_special_char=settings.PASSWORD_REQUIRE_SPECIAL_CHAR,
    )


__all__ = [
    "EmailValidator",
    "PasswordStrength",
    "PasswordValidator",
    "get_email_validator",
    "get_password_validator",
]

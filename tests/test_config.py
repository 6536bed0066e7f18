"""
Tests for settings loading.
"""

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_secret_key_is_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)

    with pytest.raises(ValidationError, match="SECRET_KEY"):
        Settings(_env_file=None)  # type: ignore[call-arg]


def test_secret_key_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "from-environment")

    assert Settings(_env_file=None).SECRET_KEY == "from-environment"  # type: ignore[call-arg]


def test_unsatisfiable_password_policy_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "from-environment")
    monkeypatch.setenv("PASSWORD_MIN_LENGTH", "20")
    monkeypatch.setenv("PASSWORD_MAX_LENGTH", "10")

    with pytest.raises(ValidationError, match="Invalid password length policy"):
        Settings(_env_file=None)  # type: ignore[call-arg]

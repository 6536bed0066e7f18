"""
Password policy and strength scoring.

``validate`` is the hard gate; ``calculate_strength`` is a hint that is
only meaningful for passwords that already pass the gate.
"""

import re
from enum import Enum
from typing import Iterable, List, Optional

DEFAULT_MIN_LENGTH = 8
DEFAULT_MAX_LENGTH = 128
DEFAULT_REQUIRE_SPECIAL_CHAR = True

UPPERCASE_PATTERN = re.compile(r"[A-Z]")
LOWERCASE_PATTERN = re.compile(r"[a-z]")
DIGIT_PATTERN = re.compile(r"[0-9]")
SPECIAL_CHAR_PATTERN = re.compile(r"[!@#$%^&*()\-_+=\[\]{}|\\:;\"'<>,.?/]")

COMMON_PASSWORDS: frozenset[str] = frozenset({
    "Password123!",
    "Admin@123",
    "Welcome123!",
    "Qwerty123!",
    "Password@2024",
    "Passw0rd!",
    "P@ssw0rd",
    "P@ssword1",
    "Letmein123!",
    "Changeme123!",
})

COMMON_PATTERNS = (
    "password", "admin", "user", "123", "qwerty",
    "abc", "111", "000", "welcome", "test",
    # keyboard runs
    "qwer", "asdf", "zxcv", "1234", "4321",
)


class PasswordStrength(str, Enum):
    WEAK = "WEAK"
    MEDIUM = "MEDIUM"
    STRONG = "STRONG"


class PasswordValidator:
    """
    Configurable password policy.

    Raises:
        ValueError: If the length configuration is impossible to satisfy
    """

    def __init__(
        self,
        min_length: int = DEFAULT_MIN_LENGTH,
        max_length: int = DEFAULT_MAX_LENGTH,
        require_special_char: bool = DEFAULT_REQUIRE_SPECIAL_CHAR,
        common_passwords: Iterable[str] = COMMON_PASSWORDS,
    ):
        if min_length < 1 or max_length < min_length:
            raise ValueError("Invalid length configuration")
        self.min_length = min_length
        self.max_length = max_length
        self.require_special_char = require_special_char
        self.common_passwords = frozenset(common_passwords)

    def is_valid(self, password: Optional[str]) -> bool:
        return not self.validate(password)

    def validate(self, password: Optional[str]) -> List[str]:
        """
        Validate a password against the policy.

        Args:
            password: Candidate password

        Returns:
            Ordered list of violation messages, empty when the password is valid
        """
        errors: List[str] = []

        if password is None or not password.strip():
            errors.append("Password cannot be null or empty")
            return errors

        candidate = password.strip()

        if len(candidate) < self.min_length:
            errors.append(f"Password must be at least {self.min_length} characters long")
        if len(candidate) > self.max_length:
            errors.append(f"Password must not exceed {self.max_length} characters")

        if not UPPERCASE_PATTERN.search(candidate):
            errors.append("Password must contain at least one uppercase letter")
        if not LOWERCASE_PATTERN.search(candidate):
            errors.append("Password must contain at least one lowercase letter")
        if not DIGIT_PATTERN.search(candidate):
            errors.append("Password must contain at least one digit")
        if self.require_special_char and not SPECIAL_CHAR_PATTERN.search(candidate):
            errors.append("Password must contain at least one special character")

        if candidate in self.common_passwords:
            errors.append("Password is too common and easily guessable")

        return errors

    def calculate_strength(self, password: Optional[str]) -> Optional[PasswordStrength]:
        """
        Score a valid password.

        Returns:
            Strength bucket, or None if the password fails validation
        """
        if not self.is_valid(password):
            return None

        candidate = password.strip()  # type: ignore[union-attr]
        score = 0

        if len(candidate) >= 12:
            score += 2
        elif len(candidate) >= 10:
            score += 1

        for pattern in (UPPERCASE_PATTERN, LOWERCASE_PATTERN, DIGIT_PATTERN, SPECIAL_CHAR_PATTERN):
            if pattern.search(candidate):
                score += 1

        if len(SPECIAL_CHAR_PATTERN.findall(candidate)) > 1:
            score += 1
        if len(DIGIT_PATTERN.findall(candidate)) > 2:
            score += 1
        if not _contains_common_pattern(candidate):
            score += 1

        if score >= 8:
            return PasswordStrength.STRONG
        if score >= 5:
            return PasswordStrength.MEDIUM
        return PasswordStrength.WEAK


def _contains_common_pattern(password: str) -> bool:
    lowered = password.lower()
    return any(pattern in lowered for pattern in COMMON_PATTERNS)

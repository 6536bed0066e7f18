"""
Email address validation.

``validate`` is a pure, fast format check. Domain existence needs network
I/O, so it lives in separate methods that callers must invoke explicitly.
"""

import asyncio
import re
from typing import Iterable, List, Optional

from email_validator import EmailNotValidError, validate_email

from app.core.logging import get_logger

logger = get_logger(__name__)

MAX_EMAIL_LENGTH = 254
MAX_LOCAL_PART_LENGTH = 64

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9_+&*-]+(?:\.[a-zA-Z0-9_+&*-]+)*@"
    r"(?:[a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}$"
)
DOMAIN_PATTERN = re.compile(
    r"^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$"
)
LOCAL_PART_PATTERN = re.compile(r"^[a-zA-Z0-9._+-]+$")

DISPOSABLE_DOMAINS: frozenset[str] = frozenset({
    "tempmail.com",
    "throwaway.email",
    "guerrillamail.com",
    "mailinator.com",
    "10minutemail.com",
    "trashmail.com",
    "yopmail.com",
    "temp-mail.org",
    "maildrop.cc",
    "mintemail.com",
})

# Skip the DNS round-trip for the big providers
KNOWN_VALID_DOMAINS: frozenset[str] = frozenset({
    "gmail.com",
    "yahoo.com",
    "microsoft.com",
    "outlook.com",
    "hotmail.com",
    "aol.com",
    "icloud.com",
})


class EmailValidator:
    """
    Validates email addresses and reports every violation found.

    Attributes:
        reject_disposable: Treat disposable-mail domains as invalid
        disposable_domains: Domains considered disposable
        known_valid_domains: Domains assumed to exist without a DNS lookup
    """

    def __init__(
        self,
        reject_disposable: bool = False,
        disposable_domains: Iterable[str] = DISPOSABLE_DOMAINS,
        known_valid_domains: Iterable[str] = KNOWN_VALID_DOMAINS,
    ):
        self.reject_disposable = reject_disposable
        self.disposable_domains = frozenset(d.lower() for d in disposable_domains)
        self.known_valid_domains = frozenset(d.lower() for d in known_valid_domains)

    def is_valid(self, email: Optional[str]) -> bool:
        return not self.validate(email)

    def validate(self, email: Optional[str]) -> List[str]:
        """
        Validate an email address.

        Args:
            email: Address to check

        Returns:
            Ordered list of violation messages, empty when the address is valid
        """
        errors: List[str] = []

        if email is None or not email.strip():
            errors.append("Email cannot be null or empty")
            return errors

        email = email.strip()

        if len(email) > MAX_EMAIL_LENGTH:
            errors.append(f"Email exceeds maximum length of {MAX_EMAIL_LENGTH} characters")

        if not EMAIL_PATTERN.match(email):
            if "@" not in email:
                errors.append("Email must contain @ symbol")
            elif email.count("@") > 1:
                errors.append("Email contains multiple @ symbols")
            elif email.startswith("@"):
                errors.append("Email is missing local part before @")
            elif email.endswith("@"):
                errors.append("Email is missing domain after @")
            else:
                errors.append("Invalid email format")

        if email.count("@") == 1:
            local_part, domain = email.split("@")
            if local_part and domain:
                self._validate_local_part(local_part, errors)
                self._validate_domain(domain, errors)

                if self.reject_disposable and self.is_disposable(email):
                    errors.append("Disposable email addresses are not allowed")

        return errors

    def _validate_local_part(self, local_part: str, errors: List[str]) -> None:
        if len(local_part) > MAX_LOCAL_PART_LENGTH:
            errors.append(f"Local part exceeds maximum length of {MAX_LOCAL_PART_LENGTH} characters")

        if local_part.startswith(".") or local_part.endswith("."):
            errors.append("Local part cannot start or end with a dot")

        if ".." in local_part:
            errors.append("Local part cannot contain consecutive dots")

        if not LOCAL_PART_PATTERN.match(local_part):
            errors.append("Local part contains invalid characters")

    def _validate_domain(self, domain: str, errors: List[str]) -> None:
        if DOMAIN_PATTERN.match(domain):
            return

        if ".." in domain:
            errors.append("Invalid domain format: consecutive dots")
        elif domain.startswith("-") or domain.endswith("-"):
            errors.append("Domain cannot start or end with hyphen")
        elif domain.startswith(".") or domain.endswith("."):
            errors.append("Domain cannot start or end with dot")
        elif "." not in domain:
            errors.append("Domain must contain at least one dot")
        elif len(domain.rsplit(".", 1)[1]) < 2:
            errors.append("Top-level domain must be at least 2 characters")
        else:
            errors.append("Invalid domain format")

    def normalize(self, email: Optional[str]) -> Optional[str]:
        """
        Trim and lower-case an address.

        Returns:
            Normalized address, or None if the address is invalid
        """
        if not self.is_valid(email):
            return None
        return email.strip().lower()  # type: ignore[union-attr]

    def is_disposable(self, email: Optional[str]) -> bool:
        if not email or "@" not in email:
            return False
        domain = email.rsplit("@", 1)[1].strip().lower()
        return domain in self.disposable_domains

    def domain_exists(self, domain: Optional[str]) -> bool:
        """
        Check that a domain accepts mail, via a DNS lookup.

        Performs network I/O. Never called by ``validate``.
        """
        if not domain:
            return False
        domain = domain.strip().lower()
        if domain in self.known_valid_domains:
            return True

        try:
            validate_email(f"postmaster@{domain}", check_deliverability=True)
        except EmailNotValidError as e:
            logger.info(f"Domain {domain} failed deliverability check: {e}")
            return False
        return True

    async def domain_exists_async(self, domain: Optional[str]) -> bool:
        """Non-blocking variant of ``domain_exists`` for async callers."""
        return await asyncio.to_thread(self.domain_exists, domain)

    def is_valid_with_dns_check(self, email: Optional[str]) -> bool:
        """Format validation followed by the DNS existence check."""
        if not self.is_valid(email):
            return False
        domain = email.strip().rsplit("@", 1)[1]  # type: ignore[union-attr]
        return self.domain_exists(domain)

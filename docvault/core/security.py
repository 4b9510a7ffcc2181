"""
Security utilities for authentication.

This module provides:
- Password hashing with Argon2id (NIST-recommended, OWASP 2025 standard)
- Opaque random identifiers for session tokens and recovery keys
- Truncation of client metadata stored alongside sessions
"""

import logging
import secrets
from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import (
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)

from docvault.core.config import settings

logger = logging.getLogger(__name__)


# =============================================================================
# Password Hashing with Argon2id
# =============================================================================

pwd_hasher = PasswordHasher(
    time_cost=settings.argon2_time_cost,
    memory_cost=settings.argon2_memory_cost,
    parallelism=settings.argon2_parallelism,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Args:
        password: Plain text password to hash

    Returns:
        Argon2id hash string (includes algorithm, parameters, salt, and hash)

    Example:
        >>> hashed = hash_password("my_secure_password")
        >>> # Returns: $argon2id$v=19$m=65536,t=2,p=4$...
    """
    return pwd_hasher.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against an Argon2id hash.

    Args:
        password: Plain text password to verify
        hashed_password: Argon2id hash to verify against

    Returns:
        True if password matches hash, False otherwise
    """
    try:
        pwd_hasher.verify(hashed_password, password)
        return True
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return pwd_hasher.hash(secrets.token_urlsafe(16))


def burn_password_check(password: str) -> None:
    """
    Spend the cost of one verification without a real account.

    Called when the username is unknown so that response time does not
    reveal whether an account exists.
    """
    verify_password(password, _dummy_hash())


# =============================================================================
# Opaque Identifiers
# =============================================================================


def generate_token_id() -> str:
    """Return a URL-safe bearer value carrying 256 bits of randomness."""
    return secrets.token_urlsafe(32)


def generate_recovery_key() -> str:
    """Return a one-time password recovery key."""
    return secrets.token_urlsafe(24)


def abbreviate(value: str | None, max_length: int) -> str | None:
    """
    Shorten ``value`` to ``max_length`` characters, ending with an ellipsis.

    Example:
        >>> abbreviate("Mozilla/5.0 (X11; Linux x86_64)", 10)
        'Mozilla...'
    """
    if value is None or len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."

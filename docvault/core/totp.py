"""
Time-based one-time passwords (RFC 6238).

Codes are 6 digits, derived with HMAC-SHA1 from a base32 shared secret and
30-second time steps, which is what authenticator apps expect by default.
Nothing is persisted here: verification is a pure function of
(secret, code, time).
"""

import base64
import hashlib
import hmac
import logging
import secrets
import struct
import time

from docvault.core.config import settings

logger = logging.getLogger(__name__)

TIME_STEP_SECONDS = 30
CODE_DIGITS = 6
SECRET_BYTES = 10  # 80 bits -> 16 base32 characters


def create_secret() -> str:
    """
    Generate a new shared secret.

    Returns:
        16-character base32 string (no padding)
    """
    return base64.b32encode(secrets.token_bytes(SECRET_BYTES)).decode("ascii").rstrip("=")


def _decode_secret(secret: str) -> bytes | None:
    normalized = secret.strip().replace(" ", "").upper()
    padded = normalized + "=" * ((8 - len(normalized) % 8) % 8)
    try:
        return base64.b32decode(padded, casefold=True)
    except (ValueError, TypeError):
        return None


def _code_for_counter(key: bytes, counter: int) -> int:
    digest = hmac.new(key, struct.pack(">Q", counter), hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    truncated = struct.unpack(">I", digest[offset : offset + 4])[0] & 0x7FFFFFFF
    return truncated % (10**CODE_DIGITS)


def generate_code(secret: str, for_time: float | None = None) -> int:
    """
    Compute the code of the time step containing ``for_time``.

    Args:
        secret: Base32 shared secret
        for_time: Unix timestamp, defaults to now

    Returns:
        Integer code (leading zeros are not represented)

    Raises:
        ValueError: If the secret is not valid base32
    """
    key = _decode_secret(secret)
    if key is None:
        raise ValueError("Invalid TOTP secret")
    timestamp = time.time() if for_time is None else for_time
    return _code_for_counter(key, int(timestamp // TIME_STEP_SECONDS))


def authorize(secret: str, code: int, for_time: float | None = None) -> bool:
    """
    Check a code against the current step and its neighbours.

    With the default window size of 3, the previous, current and next
    30-second steps are accepted to absorb clock skew.

    Args:
        secret: Base32 shared secret
        code: Code entered by the user
        for_time: Unix timestamp, defaults to now

    Returns:
        True if the code matches a step inside the window
    """
    if code < 0 or code >= 10**CODE_DIGITS:
        return False

    key = _decode_secret(secret)
    if key is None:
        logger.warning("TOTP verification attempted with a malformed secret")
        return False

    timestamp = time.time() if for_time is None else for_time
    current = int(timestamp // TIME_STEP_SECONDS)
    half_window = (settings.totp_window_size - 1) // 2

    matched = False
    for counter in range(current - half_window, current + half_window + 1):
        candidate = _code_for_counter(key, counter)
        # Constant-time comparison over the zero-padded representations
        if hmac.compare_digest(
            str(candidate).zfill(CODE_DIGITS), str(code).zfill(CODE_DIGITS)
        ):
            matched = True
    return matched

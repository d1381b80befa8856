"""
Cryptographically secure random helpers.

All draws go through :mod:`secrets`, which reads from the operating system
CSPRNG and is safe to call from several threads at once.
"""

import logging
import secrets
import uuid
from typing import List

from core.errors import RandomSourceError

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────────────────

ALPHANUMERIC = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


# ── Bytes ─────────────────────────────────────────────────────────────────────

def random_bytes(length: int) -> bytes:
    """
    Return ``length`` random bytes from the OS entropy source.

    Args:
        length: Number of bytes (0 returns ``b""``).

    Returns:
        Random bytes.

    Raises:
        ValueError:        If ``length`` is negative.
        RandomSourceError: If the entropy source fails.
    """
    if length < 0:
        raise ValueError(f"Length must be non-negative, got {length}")
    try:
        return secrets.token_bytes(length)
    except OSError as exc:
        raise RandomSourceError(f"Could not read {length} random bytes: {exc}") from exc


def random_hex(length: int) -> str:
    """Return ``length`` random bytes as a lowercase hex string (2*length chars)."""
    return random_bytes(length).hex()


# ── Strings ───────────────────────────────────────────────────────────────────

def random_string(length: int, charset: str = ALPHANUMERIC) -> str:
    """
    Return a random string of ``length`` characters drawn from ``charset``.

    Each character is chosen uniformly and independently.

    Raises:
        ValueError:        If ``length`` is negative or ``charset`` is empty.
        RandomSourceError: If the entropy source fails.
    """
    if length < 0:
        raise ValueError(f"Length must be non-negative, got {length}")
    if not charset:
        raise ValueError("Charset must not be empty.")
    try:
        return "".join(secrets.choice(charset) for _ in range(length))
    except OSError as exc:
        raise RandomSourceError(f"Could not draw a random string: {exc}") from exc


def random_strings(count: int, length: int, charset: str = ALPHANUMERIC) -> List[str]:
    """
    Return ``count`` independent random strings of ``length`` characters.

    The whole batch fails on the first error; a partial list is never returned.
    """
    if count < 0:
        raise ValueError(f"Count must be non-negative, got {count}")
    strings = [random_string(length, charset) for _ in range(count)]
    logger.debug("Drew %d random strings of length %d", count, length)
    return strings


# ── UUID ──────────────────────────────────────────────────────────────────────

def new_uuid4() -> str:
    """Return a random RFC 4122 version 4 UUID in canonical string form."""
    return str(uuid.UUID(bytes=random_bytes(16), version=4))

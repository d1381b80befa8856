"""
TOTP (Time-based One-Time Password) implementation following RFC 6238.

Pipeline::

    timestamp ──time_counter──▶ counter ──compute_hmac──▶ digest ──truncate──▶ code

Produces codes identical to Google Authenticator.
"""

import hashlib
import hmac
import logging
import struct
import time
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from core.crypto import constant_time_compare
from core.utils import decode_secret, validate_digits, validate_period

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────────────────

DEFAULT_DIGITS = 6
DEFAULT_PERIOD = 30
MIN_DIGEST_SIZE = 20            # offset (max 15) + 4 bytes must stay in bounds
MAX_COUNTER = 2**64 - 1

Timestamp = Union[int, float, datetime]


class Algorithm(str, Enum):
    """Supported HMAC algorithms."""

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.upper().replace("-", ""):
                    return member
        return None

    @property
    def hash_name(self) -> str:
        """Name understood by :mod:`hashlib` / :mod:`hmac`."""
        return self.value.lower()

    @property
    def digest_size(self) -> int:
        return hashlib.new(self.hash_name).digest_size

    def mac(self, key: bytes, message: bytes) -> bytes:
        """Return the raw HMAC digest of ``message`` under ``key``."""
        return hmac.new(key, message, self.hash_name).digest()


# ── Counter ───────────────────────────────────────────────────────────────────

def _epoch_seconds(timestamp: Optional[Timestamp]) -> int:
    if timestamp is None:
        return int(time.time())
    if isinstance(timestamp, datetime):
        timestamp = timestamp.timestamp()
    if timestamp < 0:
        raise ValueError(f"Timestamp must not precede the Unix epoch, got {timestamp}")
    return int(timestamp)


def time_counter(timestamp: Optional[Timestamp] = None, period: int = DEFAULT_PERIOD) -> int:
    """
    Return the RFC 6238 time step counter ``floor(timestamp / period)``.

    Args:
        timestamp: Unix seconds or an aware ``datetime`` (``time.time()`` if None).
        period:    Time step in seconds.

    Raises:
        InvalidPeriodError: If ``period`` is not a positive integer.
    """
    validate_period(period)
    return _epoch_seconds(timestamp) // period


def remaining_seconds(period: int = DEFAULT_PERIOD, timestamp: Optional[Timestamp] = None) -> int:
    """Return seconds until the current TOTP window expires."""
    validate_period(period)
    return period - (_epoch_seconds(timestamp) % period)


# ── HMAC ──────────────────────────────────────────────────────────────────────

def compute_hmac(secret: str, counter: int, algorithm: Algorithm = Algorithm.SHA1) -> bytes:
    """
    HMAC of the 8-byte big-endian ``counter`` keyed with the decoded secret.

    Args:
        secret:    Unpadded base32 secret (case-insensitive).
        counter:   Unsigned 64-bit counter.
        algorithm: HMAC algorithm.

    Returns:
        Raw digest bytes.

    Raises:
        InvalidSecretEncodingError: If the secret is not valid base32.
        ValueError: If ``counter`` does not fit in 64 unsigned bits.
    """
    if not 0 <= counter <= MAX_COUNTER:
        raise ValueError(f"Counter must fit in 64 unsigned bits, got {counter}")
    key = decode_secret(secret)
    return Algorithm(algorithm).mac(key, struct.pack(">Q", counter))


def compute_timed_hmac(
    secret: str,
    timestamp: Optional[Timestamp] = None,
    period: int = DEFAULT_PERIOD,
    algorithm: Algorithm = Algorithm.SHA1,
) -> bytes:
    """:func:`compute_hmac` over the time step counter for ``timestamp``."""
    return compute_hmac(secret, time_counter(timestamp, period), algorithm)


# ── Dynamic truncation ───────────────────────────────────────────────────────

def truncate(digest: bytes, digits: int = DEFAULT_DIGITS) -> str:
    """
    Dynamic truncation (RFC 4226 §5.3).

    Args:
        digest: HMAC output, at least 20 bytes.
        digits: Number of OTP digits (6-8).

    Returns:
        Zero-padded OTP string of exactly ``digits`` characters.

    Raises:
        InvalidDigitCountError: If ``digits`` is outside [6, 8].
        ValueError: If the digest is shorter than 20 bytes.
    """
    validate_digits(digits)
    if len(digest) < MIN_DIGEST_SIZE:
        raise ValueError(
            f"Digest must be at least {MIN_DIGEST_SIZE} bytes, got {len(digest)}"
        )

    offset = digest[-1] & 0x0F
    code = (
        (digest[offset] & 0x7F) << 24
        | (digest[offset + 1] & 0xFF) << 16
        | (digest[offset + 2] & 0xFF) << 8
        | (digest[offset + 3] & 0xFF)
    )
    otp = code % (10**digits)
    return str(otp).zfill(digits)


# ── Generate / compare ────────────────────────────────────────────────────────

def generate_totp(
    secret: str,
    timestamp: Optional[Timestamp] = None,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = Algorithm.SHA1,
) -> str:
    """
    Generate a TOTP code.

    Args:
        secret:    Unpadded base32 secret.
        timestamp: Override Unix timestamp (uses time.time() if None).
        period:    Time step in seconds (default 30).
        digits:    Number of digits in the OTP (default 6).
        algorithm: HMAC algorithm (default SHA1 for GA compatibility).

    Returns:
        OTP string, zero-padded to ``digits`` characters.
    """
    validate_digits(digits)
    digest = compute_timed_hmac(secret, timestamp, period, algorithm)
    return truncate(digest, digits)


def compare_totp(
    candidate: str,
    secret: str,
    timestamp: Optional[Timestamp] = None,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = Algorithm.SHA1,
) -> bool:
    """
    Check ``candidate`` against the code for the time step of ``timestamp``.

    Returns False only on a mismatch; invalid secret, period or digit count
    raise instead.
    """
    expected = generate_totp(secret, timestamp, period, digits, algorithm)
    return constant_time_compare(candidate.strip(), expected)


def validate_totp(
    token: str,
    secret: str,
    timestamp: Optional[Timestamp] = None,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = Algorithm.SHA1,
    window: int = 1,
) -> bool:
    """
    Validate a TOTP token within ±``window`` time steps.

    Args:
        token:     Token to validate.
        secret:    Unpadded base32 secret.
        timestamp: Override Unix timestamp.
        period:    Time step in seconds.
        digits:    Expected number of digits.
        algorithm: HMAC algorithm.
        window:    Allowed skew in steps (default 1).

    Returns:
        True if the token is valid within the window.
    """
    if window < 0:
        raise ValueError(f"Window must be non-negative, got {window}")
    counter = time_counter(timestamp, period)

    for step in range(-window, window + 1):
        if counter + step < 0:
            continue
        if compare_totp(token, secret, (counter + step) * period, period, digits, algorithm):
            logger.debug("TOTP accepted at step offset %d", step)
            return True
    return False

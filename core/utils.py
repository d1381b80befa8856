"""
Utility helpers for otpkit.
"""

import base64
import binascii
import re
import unicodedata

from core.entropy import random_bytes
from core.errors import InvalidDigitCountError, InvalidPeriodError, InvalidSecretEncodingError

# ── Constants ────────────────────────────────────────────────────────────────

MIN_DIGITS = 6
MAX_DIGITS = 8
DEFAULT_SECRET_LENGTH = 20      # 160-bit secret, RFC 4226 recommendation

_BASE32_RE = re.compile(r"[A-Z2-7]+")


# ── Base32 ────────────────────────────────────────────────────────────────────

def normalize_secret(secret: str) -> str:
    """
    Normalise a base32 secret: strip whitespace, uppercase, drop padding.

    Args:
        secret: Raw user-supplied secret string.

    Returns:
        Uppercase unpadded base32 string.

    Raises:
        InvalidSecretEncodingError: If the secret is empty or contains
            characters outside the RFC 4648 base32 alphabet.
    """
    secret = "".join(secret.split()).upper().rstrip("=")
    if not secret:
        raise InvalidSecretEncodingError("secret is empty")
    if not _BASE32_RE.fullmatch(secret):
        raise InvalidSecretEncodingError(
            "secret contains invalid base32 characters", len(secret)
        )
    return secret


def decode_secret(secret: str) -> bytes:
    """
    Decode an unpadded base32 secret string to raw bytes.

    Args:
        secret: Base32 secret, any case.

    Returns:
        Raw key bytes.

    Raises:
        InvalidSecretEncodingError: On empty or malformed input.
    """
    secret = normalize_secret(secret)
    # 1, 3 or 6 trailing characters cannot come from whole bytes
    if len(secret) % 8 in (1, 3, 6):
        raise InvalidSecretEncodingError("invalid base32 length", len(secret))
    pad = (8 - len(secret) % 8) % 8
    try:
        return base64.b32decode(secret + "=" * pad)
    except binascii.Error as exc:
        raise InvalidSecretEncodingError(str(exc), len(secret)) from exc


def encode_secret(raw: bytes) -> str:
    """Encode raw bytes as an uppercase base32 string (no padding)."""
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def new_secret(length: int = DEFAULT_SECRET_LENGTH) -> str:
    """
    Generate a new random shared secret.

    Args:
        length: Number of random bytes (0 yields an empty string).

    Returns:
        Unpadded uppercase base32 encoding of ``length`` random bytes.

    Raises:
        RandomSourceError: If the entropy source fails.
    """
    return encode_secret(random_bytes(length))


# ── URI helpers ───────────────────────────────────────────────────────────────

def sanitise_label(text: str) -> str:
    """Remove control characters and limit label length."""
    text = unicodedata.normalize("NFC", text)
    text = "".join(ch for ch in text if unicodedata.category(ch)[0] != "C")
    return text[:128].strip()


# ── Display ───────────────────────────────────────────────────────────────────

def format_otp(code: str, group: int = 3) -> str:
    """
    Format an OTP code with spaces for readability.

    Example::

        >>> format_otp("12345678")
        "123 456 78"
    """
    return " ".join(code[i : i + group] for i in range(0, len(code), group))


# ── Validation ────────────────────────────────────────────────────────────────

def validate_digits(digits: int) -> None:
    if isinstance(digits, bool) or not isinstance(digits, int):
        raise InvalidDigitCountError(digits, MIN_DIGITS, MAX_DIGITS)
    if not MIN_DIGITS <= digits <= MAX_DIGITS:
        raise InvalidDigitCountError(digits, MIN_DIGITS, MAX_DIGITS)


def validate_period(period: int) -> None:
    if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
        raise InvalidPeriodError(period)

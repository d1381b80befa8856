"""
HOTP (HMAC-based One-Time Password) implementation following RFC 4226.
"""

from typing import Optional

from core.crypto import constant_time_compare
from core.totp import DEFAULT_DIGITS, Algorithm, compute_hmac, truncate
from core.utils import validate_digits


def generate_hotp(
    secret: str,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = Algorithm.SHA1,
) -> str:
    """
    Generate an HOTP code.

    Args:
        secret:    Unpadded base32 secret.
        counter:   Synchronisation counter value.
        digits:    Number of OTP digits (6-8).
        algorithm: HMAC algorithm.

    Returns:
        Zero-padded OTP string.
    """
    validate_digits(digits)
    return truncate(compute_hmac(secret, counter, algorithm), digits)


def validate_hotp(
    token: str,
    secret: str,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = Algorithm.SHA1,
    look_ahead: int = 10,
) -> Optional[int]:
    """
    Validate an HOTP token and return the synchronised counter value.

    Args:
        token:      Token to validate.
        secret:     Unpadded base32 secret.
        counter:    Current counter.
        digits:     Expected OTP length.
        algorithm:  HMAC algorithm.
        look_ahead: Max steps to search ahead for resync.

    Returns:
        The new counter value if valid, or None if invalid.
    """
    if look_ahead < 0:
        raise ValueError(f"look_ahead must be non-negative, got {look_ahead}")
    for i in range(look_ahead + 1):
        expected = generate_hotp(secret, counter + i, digits, algorithm)
        if constant_time_compare(token.strip(), expected):
            return counter + i + 1
    return None

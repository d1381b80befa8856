"""
Cryptographic utilities for otpkit.

Key derivation  : PBKDF2-HMAC (SHA-256 by default)
Encryption      : AES-GCM (authenticated encryption), hex-encoded output
"""

import hashlib
import hmac

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from core.entropy import random_bytes

# ── Constants ────────────────────────────────────────────────────────────────

SALT_SIZE = 32          # 256-bit salt
NONCE_SIZE = 12         # 96-bit nonce (GCM recommendation)
KEY_SIZE = 32           # 256-bit AES key
AES_KEY_SIZES = (16, 24, 32)
PBKDF2_ITERATIONS = 480_000  # OWASP 2023 recommendation for PBKDF2-SHA256
PBKDF2_HASH = "sha256"


# ── Key derivation ────────────────────────────────────────────────────────────

def derive_key(
    password: str,
    salt: bytes,
    iterations: int = PBKDF2_ITERATIONS,
    length: int = KEY_SIZE,
    hash_name: str = PBKDF2_HASH,
) -> bytes:
    """
    Derive a key from ``password`` using PBKDF2-HMAC.

    Args:
        password:   Password (unicode string).
        salt:       Random salt, see :func:`generate_salt`.
        iterations: PBKDF2 iteration count.
        length:     Derived key length in bytes.
        hash_name:  hashlib name of the PRF hash (sha1 / sha256 / sha512).

    Returns:
        ``length``-byte derived key.
    """
    return hashlib.pbkdf2_hmac(
        hash_name,
        password.encode("utf-8"),
        salt,
        iterations,
        dklen=length,
    )


def generate_salt(size: int = SALT_SIZE) -> bytes:
    """Return a cryptographically random salt (32 bytes by default)."""
    return random_bytes(size)


# ── AES-GCM encryption / decryption ──────────────────────────────────────────

def _check_key(key: bytes) -> None:
    if len(key) not in AES_KEY_SIZES:
        raise ValueError(f"Key must be 16, 24 or 32 bytes, got {len(key)}")


def encrypt(plaintext: bytes, key: bytes) -> str:
    """
    Encrypt *plaintext* with AES-GCM.

    Layout of the returned hex string (before hex encoding)::

        [ nonce (12 bytes) | ciphertext+tag ]

    Args:
        plaintext: Data to encrypt.
        key:       16, 24 or 32 byte AES key.

    Returns:
        Lowercase hex of nonce + ciphertext + tag.

    Raises:
        ValueError: If the key length is not a valid AES key size.
    """
    _check_key(key)
    nonce = random_bytes(NONCE_SIZE)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)
    return (nonce + ciphertext).hex()


def decrypt(encrypted: str, key: bytes) -> bytes:
    """
    Decrypt a hex string produced by :func:`encrypt`.

    Raises:
        ValueError: If the key size is wrong, the input is not hex or is
            shorter than a nonce.
        cryptography.exceptions.InvalidTag: If authentication fails (wrong key
            or tampered data).
    """
    _check_key(key)
    blob = bytes.fromhex(encrypted)
    if len(blob) < NONCE_SIZE:
        raise ValueError("Ciphertext is shorter than the GCM nonce.")
    nonce, ciphertext = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
    return AESGCM(key).decrypt(nonce, ciphertext, None)


def constant_time_compare(a: str, b: str) -> bool:
    """Return True if *a* == *b* in constant time (timing-safe)."""
    return hmac.compare_digest(a.encode(), b.encode())

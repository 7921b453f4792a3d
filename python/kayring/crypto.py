"""Keyring encryption: PBKDF2-HMAC-SHA256 + AES-256-GCM (file-compatible with kayring v1)."""
import os
import unicodedata
from contextlib import contextmanager
from typing import Iterator

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from kayring.errors import DecryptionFailed, InvalidParameter

KEY_LEN = 32
SALT_LEN = 16
NONCE_LEN = 12
TAG_LEN = 16
DEFAULT_ITERATIONS = 100_000
MIN_ITERATIONS = 1_000
# Larger counts in a stored header mean the header is damaged.
MAX_ITERATIONS = 100_000_000


def check_iterations(iterations: int, minimum: int = MIN_ITERATIONS) -> int:
    """Validate an iteration count.

    New records must meet MIN_ITERATIONS; reading version 1 files only
    needs minimum=1, since those were written without a floor.
    """
    if isinstance(iterations, bool) or not isinstance(iterations, int):
        raise InvalidParameter(f"Iteration count must be an integer, got {type(iterations).__name__}")
    if not minimum <= iterations <= MAX_ITERATIONS:
        raise InvalidParameter(
            f"Iteration count must be between {minimum} and {MAX_ITERATIONS}, got {iterations}"
        )
    return iterations


def normalize_password(password: str) -> bytes:
    return unicodedata.normalize("NFC", password).encode("utf-8")


def derive_key(password: str, salt: bytes, iterations: int) -> bytes:
    """Derive a KEY_LEN-byte key. Same inputs always give the same key.

    An empty password is accepted; an empty salt is not.
    """
    if not salt:
        raise InvalidParameter("Salt must not be empty")
    check_iterations(iterations, minimum=1)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LEN,
        salt=bytes(salt),
        iterations=iterations,
    )
    return kdf.derive(normalize_password(password))


@contextmanager
def derived_key(password: str, salt: bytes, iterations: int) -> Iterator[bytearray]:
    """Yield the derived key in a buffer that is zeroed on exit."""
    key = bytearray(derive_key(password, salt, iterations))
    try:
        yield key
    finally:
        key[:] = bytes(len(key))


def generate_salt() -> bytes:
    return os.urandom(SALT_LEN)


def generate_nonce() -> bytes:
    return os.urandom(NONCE_LEN)


def _check_key_nonce(key: bytes, nonce: bytes) -> None:
    if len(key) != KEY_LEN:
        raise InvalidParameter(f"Invalid key length: expected {KEY_LEN}, got {len(key)}")
    if len(nonce) != NONCE_LEN:
        raise InvalidParameter(f"Invalid nonce length: expected {NONCE_LEN}, got {len(nonce)}")


def seal(key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
    """Encrypt plaintext. Returns ciphertext with the TAG_LEN-byte tag appended."""
    _check_key_nonce(key, nonce)
    return AESGCM(key).encrypt(nonce, plaintext, None)


def open_sealed(key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    """Decrypt ciphertext+tag produced by seal().

    Raises DecryptionFailed when the tag does not verify, whatever the cause.
    """
    _check_key_nonce(key, nonce)
    if len(ciphertext) < TAG_LEN:
        raise DecryptionFailed()
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag:
        raise DecryptionFailed() from None

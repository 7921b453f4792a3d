"""Binary layout of one kaystore file.

Version 2 (written):

    +---------+----------------+-----------+------------+-------------------+
    | 0x02    | iterations     | salt      | nonce      | ciphertext || tag |
    | 1 byte  | uint32 BE      | 16 bytes  | 12 bytes   | >= 16 bytes       |
    +---------+----------------+-----------+------------+-------------------+

Version 1 (read, and re-encoded unchanged):

    +---------+-----------+------------+-------------------+
    | 0x01    | salt      | nonce      | ciphertext || tag |
    +---------+-----------+------------+-------------------+

Version 1 files do not carry their iteration count, so the caller supplies it
when decoding.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass

from kayring.crypto import (
    DEFAULT_ITERATIONS,
    MAX_ITERATIONS,
    MIN_ITERATIONS,
    NONCE_LEN,
    SALT_LEN,
    TAG_LEN,
)
from kayring.errors import CorruptRecord

VERSION_1 = 1
VERSION_2 = 2
CURRENT_VERSION = VERSION_2

_ITERATIONS = struct.Struct(">I")

_V1_HEADER_LEN = 1 + SALT_LEN + NONCE_LEN
_V2_HEADER_LEN = 1 + _ITERATIONS.size + SALT_LEN + NONCE_LEN


@dataclass(frozen=True)
class KeystoreRecord:
    salt: bytes
    iterations: int
    nonce: bytes
    ciphertext: bytes
    version: int = CURRENT_VERSION


def encode_record(record: KeystoreRecord) -> bytes:
    """Encode a record into its persisted bytes."""
    if len(record.salt) != SALT_LEN:
        raise CorruptRecord(f"Invalid salt length: expected {SALT_LEN}, got {len(record.salt)}")
    if len(record.nonce) != NONCE_LEN:
        raise CorruptRecord(f"Invalid nonce length: expected {NONCE_LEN}, got {len(record.nonce)}")
    if len(record.ciphertext) < TAG_LEN:
        raise CorruptRecord("Ciphertext is shorter than the authentication tag")

    if record.version == VERSION_1:
        header = bytes([VERSION_1])
    elif record.version == VERSION_2:
        if not MIN_ITERATIONS <= record.iterations <= MAX_ITERATIONS:
            raise CorruptRecord(f"Iteration count out of range: {record.iterations}")
        header = bytes([VERSION_2]) + _ITERATIONS.pack(record.iterations)
    else:
        raise CorruptRecord(f"Unknown file version {record.version}")

    return b"".join([header, record.salt, record.nonce, record.ciphertext])


def decode_record(buf: bytes, legacy_iterations: int = DEFAULT_ITERATIONS) -> KeystoreRecord:
    """Decode persisted bytes into a record.

    legacy_iterations is the iteration count assumed for version 1 files.
    """
    if not buf:
        raise CorruptRecord("Empty kaystore file")

    version = buf[0]
    if version == VERSION_1:
        header_len = _V1_HEADER_LEN
        offset = 1
        iterations = legacy_iterations
    elif version == VERSION_2:
        header_len = _V2_HEADER_LEN
        if len(buf) < 1 + _ITERATIONS.size:
            raise CorruptRecord("Truncated kaystore header")
        (iterations,) = _ITERATIONS.unpack_from(buf, 1)
        if iterations < MIN_ITERATIONS:
            raise CorruptRecord(f"Iteration count below minimum: {iterations}")
        if iterations > MAX_ITERATIONS:
            raise CorruptRecord(f"Iteration count above maximum: {iterations}")
        offset = 1 + _ITERATIONS.size
    else:
        raise CorruptRecord(f"Unknown file version {version}")

    if len(buf) < header_len + TAG_LEN:
        raise CorruptRecord(
            f"Truncated kaystore: need at least {header_len + TAG_LEN} bytes, got {len(buf)}"
        )

    salt = bytes(buf[offset : offset + SALT_LEN])
    offset += SALT_LEN
    nonce = bytes(buf[offset : offset + NONCE_LEN])
    offset += NONCE_LEN
    ciphertext = bytes(buf[offset:])

    return KeystoreRecord(
        salt=salt,
        iterations=iterations,
        nonce=nonce,
        ciphertext=ciphertext,
        version=version,
    )

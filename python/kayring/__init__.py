from kayring.base import KeystoreDirectoryBase, WriteMode
from kayring.crypto import DEFAULT_ITERATIONS, MIN_ITERATIONS
from kayring.directory import DEFAULT_DIRNAME, KeystoreDirectory, default_dir
from kayring.errors import (
    AlreadyExists,
    CorruptRecord,
    DecryptionFailed,
    InvalidParameter,
    IOFailure,
    KeyringError,
    MissingValue,
    NotFound,
)
from kayring.memory import MemoryKeystoreDirectory
from kayring.record import KeystoreRecord
from kayring.service import KeyringService

__all__ = [
    "DEFAULT_DIRNAME",
    "DEFAULT_ITERATIONS",
    "MIN_ITERATIONS",
    "KeystoreDirectoryBase",
    "KeystoreDirectory",
    "MemoryKeystoreDirectory",
    "KeystoreRecord",
    "KeyringService",
    "WriteMode",
    "default_dir",
    "KeyringError",
    "InvalidParameter",
    "AlreadyExists",
    "MissingValue",
    "NotFound",
    "DecryptionFailed",
    "CorruptRecord",
    "IOFailure",
]

"""Keyring error taxonomy.

Every failure the core can report is a distinct subclass of KeyringError so
callers can tell outcomes apart without parsing messages.
"""
from typing import Optional


class KeyringError(Exception):
    """Base class for all keyring errors."""
    pass


class InvalidParameter(KeyringError, ValueError):
    """Malformed input: empty salt, iteration count out of range, bad name."""
    pass


class AlreadyExists(KeyringError):
    """The target name already has a record and overwriting was not requested."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A kaystore {name} already exists. Use --force to overwrite.")


class MissingValue(KeyringError):
    """`set` was called without a value to store."""

    def __init__(self, message: str = "Value is required in silent mode"):
        super().__init__(message)


class NotFound(KeyringError, LookupError):
    """No record exists under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No kaystore found for {name}")


class DecryptionFailed(KeyringError):
    """Authentication tag did not verify.

    Raised alike for a wrong password and for tampered data.
    """

    def __init__(self):
        super().__init__("Failed to decrypt: wrong password or corrupted kaystore")


class CorruptRecord(KeyringError):
    """The persisted bytes do not match any known record layout."""
    pass


class IOFailure(KeyringError):
    """A filesystem operation failed (permissions, disk full, ...)."""

    def __init__(self,
                 message: str,
                 path: Optional[str] = None,
                 orig_exc: Optional[OSError] = None):
        self.path = path
        self.orig_exc = orig_exc

        full_msg = message
        if path:
            full_msg += f" {path}"
        if orig_exc:
            full_msg += f": {orig_exc.strerror or orig_exc}"
        super().__init__(full_msg)

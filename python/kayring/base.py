"""Keystore directory base class (abstract).

The service depends on this type, so you can inject alternative storage
(memory/db/etc.) without changing keyring logic.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod

from kayring.errors import InvalidParameter
from kayring.record import KeystoreRecord


class WriteMode(enum.Enum):
    CREATE_ONLY = "create_only"
    OVERWRITE = "overwrite"


def validate_name(name: str) -> str:
    """Reject names that cannot be used as a plain file name."""
    if not isinstance(name, str) or not name:
        raise InvalidParameter("Name must be a non-empty string")
    if name.startswith("."):
        raise InvalidParameter(f"Name must not start with '.': {name!r}")
    if any(c in name for c in ("/", "\\", "\x00")):
        raise InvalidParameter(f"Name must not contain path separators: {name!r}")
    return name


class KeystoreDirectoryBase(ABC):
    @abstractmethod
    def get_path(self) -> str:
        """Get the path/identifier of the directory (if applicable)."""
        ...

    @abstractmethod
    def exists(self, name: str) -> bool:
        """True if a record is stored under name."""
        ...

    @abstractmethod
    def load(self, name: str) -> KeystoreRecord:
        """Load the record for name. Raises NotFound."""
        ...

    @abstractmethod
    def list_names(self) -> list[str]:
        """Sorted names of all stored records (a fresh list on every call)."""
        ...

    @abstractmethod
    def write(self, name: str, record: KeystoreRecord, mode: WriteMode) -> None:
        """Persist record under name.

        CREATE_ONLY raises AlreadyExists when name is taken; OVERWRITE
        replaces unconditionally. Either the old or the new record is
        visible afterwards, never a mix.
        """
        ...

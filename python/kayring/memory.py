"""In-memory keystore directory (tests, embedding)."""

from __future__ import annotations

from typing import Dict

from kayring.base import KeystoreDirectoryBase, WriteMode, validate_name
from kayring.crypto import DEFAULT_ITERATIONS
from kayring.errors import AlreadyExists, NotFound
from kayring.record import KeystoreRecord, decode_record, encode_record


class MemoryKeystoreDirectory(KeystoreDirectoryBase):
    """Holds encoded records in a dict, so it exercises the same codec as disk."""

    def __init__(self, legacy_iterations: int = DEFAULT_ITERATIONS):
        self.legacy_iterations = legacy_iterations
        self._files: Dict[str, bytes] = {}

    def get_path(self) -> str:
        return ":memory:"

    def exists(self, name: str) -> bool:
        return validate_name(name) in self._files

    def load(self, name: str) -> KeystoreRecord:
        try:
            raw = self._files[validate_name(name)]
        except KeyError:
            raise NotFound(name) from None
        return decode_record(raw, legacy_iterations=self.legacy_iterations)

    def list_names(self) -> list[str]:
        return sorted(self._files)

    def write(self, name: str, record: KeystoreRecord, mode: WriteMode) -> None:
        validate_name(name)
        data = encode_record(record)
        if mode is WriteMode.CREATE_ONLY and name in self._files:
            raise AlreadyExists(name)
        self._files[name] = data

    def raw(self, name: str) -> bytes:
        """Persisted bytes for name (test helper)."""
        return self._files[name]

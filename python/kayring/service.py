"""KeyringService: set / get / list / clone on top of a keystore directory.

Every call is self-contained: nothing is cached between calls, derived keys
live only inside a `derived_key` block and our plaintext copies are zeroed
before returning.
"""

from __future__ import annotations

from typing import Optional, Union

from kayring.base import KeystoreDirectoryBase, WriteMode
from kayring.crypto import (
    DEFAULT_ITERATIONS,
    check_iterations,
    derived_key,
    generate_nonce,
    generate_salt,
    open_sealed,
    seal,
)
from kayring.directory import KeystoreDirectory
from kayring.errors import AlreadyExists, MissingValue
from kayring.logger import get_logger
from kayring.record import KeystoreRecord


class KeyringService:
    def __init__(
        self,
        directory: Optional[KeystoreDirectoryBase] = None,
        dir_path: Optional[str] = None,
        iterations: int = DEFAULT_ITERATIONS,
    ):
        # Also the assumed count for version 1 files, which had no floor;
        # set() applies MIN_ITERATIONS to new records.
        self.iterations = check_iterations(iterations, minimum=1)
        # Allow injecting a custom directory implementation.
        self.directory: KeystoreDirectoryBase = directory or KeystoreDirectory(
            dir_path=dir_path, legacy_iterations=iterations
        )

    def set(
        self,
        name: str,
        value: Optional[Union[bytes, str]],
        password: str = "",
        force: bool = False,
        iterations: Optional[int] = None,
    ) -> None:
        """Encrypt value under password and store it as name.

        Without force an existing name raises AlreadyExists and is left as is.
        Each call draws a fresh salt and nonce.
        """
        log = get_logger(__name__)
        if not force and self.directory.exists(name):
            raise AlreadyExists(name)
        if value is None:
            raise MissingValue()
        rounds = check_iterations(self.iterations if iterations is None else iterations)

        salt = generate_salt()
        nonce = generate_nonce()
        plaintext = bytearray(value.encode("utf-8") if isinstance(value, str) else value)
        try:
            with derived_key(password, salt, rounds) as key:
                ciphertext = seal(key, nonce, plaintext)
        finally:
            plaintext[:] = bytes(len(plaintext))

        record = KeystoreRecord(salt=salt, iterations=rounds, nonce=nonce, ciphertext=ciphertext)
        mode = WriteMode.OVERWRITE if force else WriteMode.CREATE_ONLY
        self.directory.write(name, record, mode)
        log.info("keyring: set ok name=%s force=%s iterations=%d", name, force, rounds)

    def get(self, name: str, password: str = "") -> bytes:
        """Decrypt and return the value stored as name.

        Raises NotFound, or DecryptionFailed for a wrong password or damaged data.
        """
        log = get_logger(__name__)
        record = self.directory.load(name)
        with derived_key(password, record.salt, record.iterations) as key:
            value = open_sealed(key, record.nonce, record.ciphertext)
        log.debug("keyring: get ok name=%s", name)
        return value

    def list(self) -> list[str]:
        return self.directory.list_names()

    def clone(self, src: str, dst: str, force: bool = False) -> None:
        """Copy src's encrypted record verbatim to dst; no password involved."""
        log = get_logger(__name__)
        record = self.directory.load(src)
        if not force and self.directory.exists(dst):
            raise AlreadyExists(dst)
        mode = WriteMode.OVERWRITE if force else WriteMode.CREATE_ONLY
        self.directory.write(dst, record, mode)
        log.info("keyring: clone ok from=%s to=%s force=%s", src, dst, force)

"""KeystoreDirectory: one binary kaystore file per name under a directory."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

from kayring.base import KeystoreDirectoryBase, WriteMode, validate_name
from kayring.crypto import DEFAULT_ITERATIONS
from kayring.errors import AlreadyExists, IOFailure, NotFound
from kayring.logger import get_logger
from kayring.record import KeystoreRecord, decode_record, encode_record

DEFAULT_DIRNAME = ".kayring"


def default_dir() -> str:
    return os.environ.get("KAYRING_DIR") or str(Path.home() / DEFAULT_DIRNAME)


class KeystoreDirectory(KeystoreDirectoryBase):
    """File-based kaystore directory. Writes are atomic via tmp+rename."""

    def __init__(
        self,
        dir_path: Optional[str] = None,
        legacy_iterations: int = DEFAULT_ITERATIONS,
    ):
        self.dir_path = str(dir_path or default_dir())
        # Iteration count assumed for version 1 files, which do not store it.
        self.legacy_iterations = legacy_iterations

    def get_path(self) -> str:
        return self.dir_path

    def _path_for(self, name: str) -> str:
        return os.path.join(self.dir_path, validate_name(name))

    def exists(self, name: str) -> bool:
        return os.path.isfile(self._path_for(name))

    def load(self, name: str) -> KeystoreRecord:
        log = get_logger(__name__)
        path = self._path_for(name)
        log.debug("directory: load start path=%s", path)
        try:
            with open(path, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            raise NotFound(name) from None
        except OSError as e:
            raise IOFailure("Could not read from file", path, e) from e

        record = decode_record(raw, legacy_iterations=self.legacy_iterations)
        log.debug(
            "directory: load ok path=%s version=%d iterations=%d",
            path,
            record.version,
            record.iterations,
        )
        return record

    def list_names(self) -> list[str]:
        try:
            entries = os.scandir(self.dir_path)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise IOFailure("Could not read from directory", self.dir_path, e) from e

        with entries:
            # Dot-files are in-flight temporaries, never records.
            return sorted(
                entry.name
                for entry in entries
                if not entry.name.startswith(".") and entry.is_file()
            )

    def write(self, name: str, record: KeystoreRecord, mode: WriteMode) -> None:
        log = get_logger(__name__)
        target = self._path_for(name)
        data = encode_record(record)

        try:
            Path(self.dir_path).mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure("Failed to create the directory at", self.dir_path, e) from e

        tmp_path = None
        try:
            # Fixed-length prefix: any name that fits the filesystem also fits here.
            fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", dir=self.dir_path)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())

            if mode is WriteMode.OVERWRITE:
                os.replace(tmp_path, target)
            else:
                # link() fails if target exists, so create-if-absent is atomic.
                try:
                    os.link(tmp_path, target)
                except FileExistsError:
                    raise AlreadyExists(name) from None
        except OSError as e:
            raise IOFailure("Could not write to file", target, e) from e
        finally:
            if tmp_path is not None:
                self._discard(tmp_path)

        # The record is in place; a failed directory fsync only weakens durability.
        try:
            self._sync_dir()
        except OSError as e:
            log.warning("directory: fsync failed path=%s error=%s", self.dir_path, e)

        log.info(
            "directory: write ok path=%s mode=%s version=%d",
            target,
            mode.value,
            record.version,
        )

    def _discard(self, tmp_path: str) -> None:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            get_logger(__name__).warning(
                "directory: could not remove temporary path=%s error=%s", tmp_path, e
            )

    def _sync_dir(self) -> None:
        """Make the rename itself durable."""
        if not hasattr(os, "O_DIRECTORY"):
            return
        fd = os.open(self.dir_path, os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

"""
Binary layout of a SecretStore file.

Layout (little-endian):
- 2 bytes: revision (unsigned short), written once at creation
- 32 bytes: PBKDF2 salt, written once at creation
- rest: encrypted payload (nonce || ciphertext || tag), may be empty

The payload region is always replaced as a whole. `write_data` truncates the
file back to the header and writes the new payload; a crash between the two
steps leaves an empty payload behind. No OS-level file lock is taken, so two
processes writing the same file will clobber each other.
"""

from __future__ import annotations

import os
import struct
import threading
from typing import BinaryIO

from .exceptions import FormatError, StoreIOError
from ..security.kdf import SALT_SIZE

REVISION_FORMAT = "<H"
REVISION_SIZE = struct.calcsize(REVISION_FORMAT)
HEADER_SIZE = REVISION_SIZE + SALT_SIZE


class StoreFile:
    """
    Positional I/O over the store file; hides offsets from the rest of the engine.

    The store opens the file unbuffered so reads always reflect what is on disk.
    Concurrent readers share one handle and so one file position: every seek
    is paired with its read or write under a private mutex.
    """

    __slots__ = ("_fh", "_io_lock")

    def __init__(self, fh: BinaryIO):
        self._fh = fh
        self._io_lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._fh is None

    def _file(self) -> BinaryIO:
        if self._fh is None:
            raise StoreIOError("store file is closed")
        return self._fh

    def _read_at(self, offset: int, size: int = -1) -> bytes:
        with self._io_lock:
            fh = self._file()
            try:
                fh.seek(offset, os.SEEK_SET)
                return fh.read(size)
            except OSError as exc:
                raise StoreIOError(f"cannot read store file at offset {offset}: {exc}") from exc

    def _write_at(self, offset: int, data: bytes) -> None:
        with self._io_lock:
            self._write_unlocked(self._file(), offset, data)

    @staticmethod
    def _write_unlocked(fh: BinaryIO, offset: int, data: bytes) -> None:
        try:
            fh.seek(offset, os.SEEK_SET)
            view = memoryview(data)
            while view:
                # raw files may accept fewer bytes than offered
                written = fh.write(view)
                view = view[written:]
            fh.flush()
        except OSError as exc:
            raise StoreIOError(f"cannot write store file at offset {offset}: {exc}") from exc

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def read_revision(self) -> int:
        buf = self._read_at(0, REVISION_SIZE)
        if len(buf) != REVISION_SIZE:
            raise FormatError("revision number is truncated")
        (rev,) = struct.unpack(REVISION_FORMAT, buf)
        return rev

    def read_salt(self) -> bytes:
        buf = self._read_at(REVISION_SIZE, SALT_SIZE)
        if len(buf) != SALT_SIZE:
            raise FormatError("salt is truncated")
        return buf

    def write_revision(self, rev: int) -> None:
        try:
            buf = struct.pack(REVISION_FORMAT, rev)
        except struct.error as exc:
            raise FormatError(f"invalid revision {rev!r}") from exc
        self._write_at(0, buf)

    def write_salt(self, salt: bytes) -> None:
        if len(salt) != SALT_SIZE:
            raise FormatError(f"invalid salt length {len(salt)}; want {SALT_SIZE}")
        self._write_at(REVISION_SIZE, salt)

    # ------------------------------------------------------------------
    # Payload
    # ------------------------------------------------------------------

    def read_data(self) -> bytes:
        """Return everything after the header; empty for a store with no writes yet."""
        return self._read_at(HEADER_SIZE)

    def write_data(self, payload: bytes) -> None:
        """Replace the payload region with ``payload`` and sync it to disk."""
        with self._io_lock:
            fh = self._file()
            try:
                fh.truncate(HEADER_SIZE)
            except OSError as exc:
                raise StoreIOError(f"cannot truncate store file: {exc}") from exc
            self._write_unlocked(fh, HEADER_SIZE, payload)
            try:
                os.fsync(fh.fileno())
            except OSError as exc:
                raise StoreIOError(f"cannot sync store file: {exc}") from exc

    def close(self) -> None:
        with self._io_lock:
            if self._fh is None:
                return
            fh, self._fh = self._fh, None
        try:
            fh.close()
        except OSError as exc:
            raise StoreIOError(f"cannot close store file: {exc}") from exc

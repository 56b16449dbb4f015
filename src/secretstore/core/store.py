"""
SecretStore orchestrator.

A `Store` owns one open store file and the cipher derived from its passphrase.
Every operation rebuilds the record map from the encrypted payload:

    read payload -> decrypt -> decode -> (mutate -> encode -> encrypt -> write)

Reads hold the shared lock across the whole read/decrypt/decode sequence so a
concurrent writer cannot swap the payload out from under them. Mutations hold
the exclusive lock and only touch the file once encoding and encryption have
succeeded, so a failed `put`/`delete` leaves the previous payload in place.

Security Note:
    Never log values, passphrases or key material. Only key names and sizes.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .exceptions import FormatError, NotFoundError, StoreClosedError, StoreIOError, ValidationError
from .layout import StoreFile
from .locking import ReadWriteLock
from .records import RecordMap, decode_records, encode_records, validate_key
from ..security.cipher import StoreCipher
from ..security.kdf import derive_key, generate_salt, kdf_params_to_dict

logger = logging.getLogger(__name__)

# Must be incremented for every change that breaks compatibility with the
# existing binary format.
CURRENT_REVISION = 1

PathLike = Union[str, os.PathLike]


class Store:
    """
    Encrypted key/value store backed by a single file. Safe for concurrent use
    by threads of one process.

    Use :meth:`Store.open` (or :func:`open_store`) rather than the constructor.
    """

    def __init__(self, path: Path, layout: StoreFile, cipher: StoreCipher, revision: int, salt: bytes):
        self._path = path
        self._file = layout
        self._cipher: Optional[StoreCipher] = cipher
        self._revision = revision
        self._salt = salt
        self._lock = ReadWriteLock()
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, path: PathLike, passphrase: Union[str, bytes]) -> "Store":
        """
        Open the store at ``path`` protected by ``passphrase``.

        If nothing exists at ``path`` a new store is created there (owner
        read/write only) with a random salt and an empty payload. A wrong
        passphrase is not detected here; it surfaces as ``CryptoError`` on the
        first operation that decrypts the payload.
        """
        path = Path(path).expanduser()
        if passphrase is None:
            raise ValidationError("passphrase is missing")
        try:
            exists = path.exists()
        except OSError as exc:
            raise StoreIOError(f"cannot stat store path {str(path)!r}: {exc}") from exc
        if exists:
            return cls._open_existing(path, passphrase)
        return cls._create(path, passphrase)

    @classmethod
    def _create(cls, path: Path, passphrase: Union[str, bytes]) -> "Store":
        salt = generate_salt()
        try:
            fd = os.open(path, os.O_RDWR | os.O_CREAT | os.O_EXCL, 0o600)
            fh = os.fdopen(fd, "r+b", buffering=0)
        except OSError as exc:
            raise StoreIOError(f"cannot create secret store {str(path)!r}: {exc}") from exc

        layout = StoreFile(fh)
        try:
            layout.write_revision(CURRENT_REVISION)
            layout.write_salt(salt)
            cipher = StoreCipher(derive_key(passphrase, salt))
        except Exception:
            layout.close()
            raise

        logger.debug("created secret store at %s (revision %d)", path, CURRENT_REVISION)
        return cls(path, layout, cipher, CURRENT_REVISION, salt)

    @classmethod
    def _open_existing(cls, path: Path, passphrase: Union[str, bytes]) -> "Store":
        try:
            fh = open(path, "r+b", buffering=0)
        except OSError as exc:
            raise StoreIOError(f"cannot open secret store {str(path)!r}: {exc}") from exc

        layout = StoreFile(fh)
        try:
            revision = layout.read_revision()
            if revision > CURRENT_REVISION:
                raise FormatError(
                    f"unsupported store revision {revision}; this version reads up to {CURRENT_REVISION}"
                )
            salt = layout.read_salt()
            cipher = StoreCipher(derive_key(passphrase, salt))
        except Exception:
            layout.close()
            raise

        logger.debug("opened secret store at %s (revision %d)", path, revision)
        return cls(path, layout, cipher, revision, salt)

    def close(self) -> None:
        """Release the file handle and key material. Calling it twice is a no-op."""
        with self._lock.write_lock():
            if self._closed:
                return
            self._closed = True
            cipher, self._cipher = self._cipher, None
            if cipher is not None:
                cipher.close()
            self._file.close()
        logger.debug("closed secret store at %s", self._path)

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def revision(self) -> int:
        return self._revision

    def get_revision(self) -> int:
        """Return the format revision recorded in the header at open time."""
        return self._revision

    def kdf_params(self) -> dict:
        return kdf_params_to_dict(self._salt)

    # ------------------------------------------------------------------
    # Payload cycle (callers hold the lock)
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(f"secret store {str(self._path)!r} is closed")

    def _load(self) -> RecordMap:
        data = self._file.read_data()
        if not data:
            return RecordMap()
        return decode_records(self._cipher.open(data))

    def _save(self, records: RecordMap) -> None:
        payload = self._cipher.seal(encode_records(records))
        self._file.write_data(payload)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def get(self, key: str) -> bytes:
        """Return the value stored for ``key``; raise ``NotFoundError`` if absent."""
        with self._lock.read_lock():
            self._ensure_open()
            data = self._file.read_data()
            if not data:
                raise NotFoundError(f"record {key!r} not found")
            records = decode_records(self._cipher.open(data))
            value = records.load(key)
        if value is None:
            raise NotFoundError(f"record {key!r} not found")
        return value

    def put(self, key: str, value: bytes) -> None:
        """Set the value for ``key``. The value may be empty but not None."""
        if value is None:
            raise ValidationError("value is missing")
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise ValidationError(f"value must be bytes, not {type(value).__name__}")
        validate_key(key)
        value = bytes(value)

        with self._lock.write_lock():
            self._ensure_open()
            records = self._load()
            records.store(key, value)
            self._save(records)
        logger.debug("stored record %r (%d bytes)", key, len(value))

    def delete(self, key: str) -> None:
        """Remove ``key`` from the store. Deleting a missing key is not an error."""
        with self._lock.write_lock():
            self._ensure_open()
            records = self._load()
            if not records.delete(key):
                return
            self._save(records)
        logger.debug("deleted record %r", key)

    def keys(self) -> list[str]:
        """List the keys in the store; order is unspecified."""
        with self._lock.read_lock():
            self._ensure_open()
            return self._load().keys()

    def __contains__(self, key: object) -> bool:
        return key in self.keys()

    def __len__(self) -> int:
        return len(self.keys())

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Store {str(self._path)!r} revision={self._revision} {state}>"


def open_store(path: PathLike, passphrase: Union[str, bytes]) -> Store:
    """Open or create the store at ``path``; see :meth:`Store.open`."""
    return Store.open(path, passphrase)

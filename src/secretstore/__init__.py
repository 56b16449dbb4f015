"""SecretStore: a single-file, passphrase-protected key/value store.

Typical use::

    from secretstore import open_store

    with open_store("secrets.store", "strong_passphrase") as store:
        store.put("password", b"my_very_secret_password")
        store.get("password")
"""

from .version import __version__
from .core.store import CURRENT_REVISION, Store, open_store
from .core.exceptions import (
    SecretStoreError,
    StoreIOError,
    StoreClosedError,
    FormatError,
    CryptoError,
    ValidationError,
    NotFoundError,
)

__all__ = [
    "__version__",
    "CURRENT_REVISION",
    "Store",
    "open_store",
    "SecretStoreError",
    "StoreIOError",
    "StoreClosedError",
    "FormatError",
    "CryptoError",
    "ValidationError",
    "NotFoundError",
]

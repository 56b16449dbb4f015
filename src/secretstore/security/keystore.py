"""OS keystore integration using keyring for optional, convenient passphrase caching.

This module provides a tiny wrapper around `keyring` to remember a store
passphrase under a service/account pair, where the account is the resolved
store path. Use this only for opt-in convenience; do not assume keyring provides
hardware-backed security on all platforms.
"""
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..core.exceptions import SecretStoreError

DEFAULT_SERVICE = "secretstore"


class KeystoreError(SecretStoreError):
    # raised when the OS keyring refuses or fails an operation
    pass


def account_for(path) -> str:
    """Return the keyring account name used for the store at ``path``."""
    return str(Path(path).expanduser().resolve())


def assess_keyring_backend() -> tuple[bool, str]:
    """Return (is_secure, message) describing the current keyring backend.

    Heuristics are used because the `keyring` package exposes different backends
    across platforms.
    """
    try:
        backend = keyring.get_keyring()
    except Exception as e:
        return False, f"failed to get keyring backend: {e}"

    name = backend.__class__.__name__
    priority = getattr(backend, "priority", None)

    insecure_indicators = ("Plaintext", "Uncrypted", "Simple", "File")
    if any(tok in name for tok in insecure_indicators):
        return False, f"insecure backend detected: {name}"

    if priority is not None and priority <= 0:
        return False, f"no suitable secure keyring backend available (priority={priority}, backend={name})"

    # treat known platform backends as acceptable
    if "Win" in name or "Keychain" in name or "SecretService" in name or "KWallet" in name:
        return True, f"backend looks acceptable: {name} (priority={priority})"

    return True, f"unknown backend '{name}', treat with caution (priority={priority})"


def save_passphrase(service: str, account: str, passphrase: str, force: bool = False) -> None:
    """Persist ``passphrase`` in the OS keystore under (service, account).

    Refuses insecure backends unless ``force`` is set.
    """
    if not force:
        secure, msg = assess_keyring_backend()
        if not secure:
            raise KeystoreError(f"refusing to store passphrase in OS keystore: {msg}")
    try:
        keyring.set_password(service, account, passphrase)
    except KeyringError as exc:
        raise KeystoreError(f"cannot store passphrase in OS keystore: {exc}") from exc


def load_passphrase(service: str, account: str) -> Optional[str]:
    """Load a remembered passphrase from the OS keystore; returns None if absent."""
    try:
        return keyring.get_password(service, account)
    except KeyringError as exc:
        raise KeystoreError(f"cannot read passphrase from OS keystore: {exc}") from exc


def delete_passphrase(service: str, account: str) -> bool:
    """Remove the passphrase from the OS keystore; returns False if none was stored."""
    try:
        keyring.delete_password(service, account)
    except PasswordDeleteError:
        return False
    except KeyringError as exc:
        raise KeystoreError(f"cannot delete passphrase from OS keystore: {exc}") from exc
    return True

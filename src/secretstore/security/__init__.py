"""Security helpers: key derivation, AEAD payload cipher and keyring glue for SecretStore.

This package provides:
- PBKDF2-HMAC-SHA256 key derivation from a store passphrase
- AES-256-GCM sealing/opening of the store payload with random nonces
- opt-in passphrase caching in the OS keystore
"""

from .kdf import generate_salt, derive_key, kdf_params_to_dict
from .cipher import StoreCipher, generate_nonce
from .keystore import save_passphrase, load_passphrase, delete_passphrase, assess_keyring_backend

__all__ = [
    "generate_salt",
    "derive_key",
    "kdf_params_to_dict",
    "StoreCipher",
    "generate_nonce",
    "save_passphrase",
    "load_passphrase",
    "delete_passphrase",
    "assess_keyring_backend",
]

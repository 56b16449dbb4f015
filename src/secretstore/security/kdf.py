"""Passphrase key derivation for SecretStore."""
import os
from typing import Dict

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..core.exceptions import CryptoError

SALT_SIZE = 32
KEY_SIZE = 32
PBKDF2_ITERATIONS = 20000


def generate_salt(length: int = SALT_SIZE) -> bytes:
    """Return a cryptographically secure random salt."""
    try:
        salt = os.urandom(length)
    except (OSError, NotImplementedError) as exc:
        raise CryptoError("cannot generate salt") from exc
    if len(salt) != length:
        raise CryptoError("cannot generate salt: short read from entropy source")
    return salt


def derive_key(
    passphrase: bytes,
    salt: bytes,
    iterations: int = PBKDF2_ITERATIONS,
    key_len: int = KEY_SIZE,
) -> bytes:
    """
    Derive a symmetric key from a passphrase using PBKDF2-HMAC-SHA256.
    Returns raw derived key bytes.
    """
    if isinstance(passphrase, str):
        passphrase = passphrase.encode("utf-8")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=key_len,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(passphrase)


def kdf_params_to_dict(salt: bytes, iterations: int = PBKDF2_ITERATIONS, key_len: int = KEY_SIZE) -> Dict:
    return {
        "algo": "pbkdf2-hmac-sha256",
        "salt": salt.hex(),
        "iterations": iterations,
        "key_len": key_len,
    }

"""
Authenticated encryption for the SecretStore payload.

The whole record map is sealed as one blob with AES-256-GCM. The stored payload
is ``nonce || ciphertext || tag`` where the nonce is 12 random bytes drawn fresh
for every encryption.
"""

from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..core.exceptions import CryptoError
from .kdf import KEY_SIZE

# standard GCM nonce size
NONCE_SIZE = 12
TAG_SIZE = 16


def generate_nonce(length: int = NONCE_SIZE) -> bytes:
    """Return a fresh random nonce; never reuse one under the same key."""
    try:
        nonce = os.urandom(length)
    except (OSError, NotImplementedError) as exc:
        raise CryptoError("cannot generate nonce") from exc
    if len(nonce) != length:
        raise CryptoError("cannot generate nonce: short read from entropy source")
    return nonce


class StoreCipher:
    """
    AEAD context for a single open store.

    Holds the derived key for the lifetime of the store and knows nothing about
    files or records. `Store` is the integration point that wires it to the
    on-disk layout.
    """

    __slots__ = ("_aead",)

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise CryptoError(f"invalid key length {len(key)}; want {KEY_SIZE}")
        try:
            self._aead = AESGCM(key)
        except ValueError as exc:
            raise CryptoError("cannot create AES-GCM cipher") from exc

    def seal(self, plaintext: bytes) -> bytes:
        """
        Encrypt ``plaintext`` and return ``nonce || ciphertext || tag``.

        A new nonce is generated on every call, so sealing the same plaintext
        twice yields two different payloads.
        """
        nonce = generate_nonce()
        return nonce + self._aead.encrypt(nonce, plaintext, None)

    def open(self, payload: bytes) -> bytes:
        """
        Decrypt a payload produced by :meth:`seal`.

        Raises ``CryptoError`` when the payload is too short or the tag does not
        verify; no plaintext is returned in that case.
        """
        if len(payload) < NONCE_SIZE + TAG_SIZE:
            raise CryptoError("cannot decrypt payload: too short to contain nonce and tag")
        nonce, ct = payload[:NONCE_SIZE], payload[NONCE_SIZE:]
        try:
            return self._aead.decrypt(nonce, ct, None)
        except InvalidTag as exc:
            raise CryptoError(
                "cannot decrypt payload: authentication failed (wrong passphrase or corrupted store)"
            ) from exc

    def close(self) -> None:
        """Drop the reference to the key schedule."""
        self._aead = None

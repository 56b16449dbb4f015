"""
Unit tests for the AES-GCM payload cipher.
"""

import pytest
from unittest.mock import patch

from secretstore.core.exceptions import CryptoError
from secretstore.security.cipher import NONCE_SIZE, TAG_SIZE, StoreCipher, generate_nonce
from secretstore.security.kdf import derive_key, generate_salt


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def key():
    return derive_key("correct-passphrase", generate_salt())


@pytest.fixture
def cipher(key):
    return StoreCipher(key)


# ==============================================================================
# Tests: Nonces
# ==============================================================================

def test_generate_nonce_length():
    """Nonces are 12 bytes."""
    assert len(generate_nonce()) == NONCE_SIZE == 12


def test_generate_nonce_entropy_failure():
    """An entropy failure while generating a nonce is a CryptoError."""
    with patch("secretstore.security.cipher.os.urandom", side_effect=NotImplementedError):
        with pytest.raises(CryptoError, match="cannot generate nonce"):
            generate_nonce()


def test_seal_propagates_entropy_failure(cipher):
    """seal() fails rather than reusing a nonce."""
    with patch("secretstore.security.cipher.os.urandom", side_effect=OSError("gone")):
        with pytest.raises(CryptoError):
            cipher.seal(b"data")


# ==============================================================================
# Tests: Construction
# ==============================================================================

def test_rejects_wrong_key_length():
    """Only 32-byte keys are accepted."""
    with pytest.raises(CryptoError, match="invalid key length"):
        StoreCipher(b"\x00" * 16)


# ==============================================================================
# Tests: Seal / Open
# ==============================================================================

def test_seal_open_roundtrip(cipher):
    """open() returns what seal() was given."""
    msg = b"{password:bXlfdmVyeV9zZWNyZXRfcGFzc3dvcmQ=}"
    payload = cipher.seal(msg)
    # nonce (12) + ciphertext (len(msg)) + tag (16)
    assert len(payload) == NONCE_SIZE + len(msg) + TAG_SIZE
    assert cipher.open(payload) == msg


def test_seal_empty_plaintext(cipher):
    """Empty plaintext seals to nonce plus tag."""
    payload = cipher.seal(b"")
    assert len(payload) == NONCE_SIZE + TAG_SIZE
    assert cipher.open(payload) == b""


def test_seal_uses_fresh_nonce(cipher):
    """Sealing identical plaintext twice must produce different nonces and ciphertexts."""
    a = cipher.seal(b"same plaintext")
    b = cipher.seal(b"same plaintext")
    assert a[:NONCE_SIZE] != b[:NONCE_SIZE]
    assert a[NONCE_SIZE:] != b[NONCE_SIZE:]


def test_open_with_wrong_key_fails(cipher):
    """A different key cannot open the payload."""
    payload = cipher.seal(b"secret")
    other = StoreCipher(derive_key("wrong-passphrase", generate_salt()))
    with pytest.raises(CryptoError, match="authentication failed"):
        other.open(payload)


def test_open_tampered_payload_fails(cipher):
    """A flipped ciphertext bit fails authentication."""
    payload = bytearray(cipher.seal(b"secret"))
    payload[-1] ^= 0x01
    with pytest.raises(CryptoError, match="authentication failed"):
        cipher.open(bytes(payload))


def test_open_too_short(cipher):
    """A payload shorter than nonce plus tag is rejected."""
    with pytest.raises(CryptoError, match="too short"):
        cipher.open(b"short")

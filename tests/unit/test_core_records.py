"""Unit tests for the record codec."""

import base64

import pytest

from secretstore.core.exceptions import FormatError, ValidationError
from secretstore.core.records import (
    RecordMap,
    decode_records,
    encode_records,
    is_valid_key,
    validate_key,
)


def _tuple(key, value):
    return b"{" + key + b":" + base64.b64encode(value) + b"}"


# --- key validation ---

@pytest.mark.parametrize("key", ["a", "valid-key_1", "PASSWORD", "0", "-", "_"])
def test_valid_keys(key):
    """Letters, digits, '-' and '_' are accepted."""
    assert is_valid_key(key)
    assert validate_key(key) == key


@pytest.mark.parametrize("key", ["bad key!", "a:b", "{a}", "é", "a.b", "a/b", "a\n"])
def test_invalid_keys(key):
    """Anything outside [A-Za-z0-9_-] is rejected."""
    assert not is_valid_key(key)
    with pytest.raises(ValidationError, match="invalid characters"):
        validate_key(key)


def test_empty_key_rejected():
    """The empty string is not a key."""
    with pytest.raises(ValidationError, match="key is empty"):
        validate_key("")


def test_non_string_key_rejected():
    """Keys must be str."""
    with pytest.raises(ValidationError, match="must be a string"):
        validate_key(b"bytes")


# --- RecordMap ---

def test_record_map_store_load_delete():
    """RecordMap should support store, load and delete."""
    records = RecordMap()
    records.store("a", b"1")
    records.store("b", b"")

    assert records.load("a") == b"1"
    assert records.load("b") == b""
    assert records.load("missing") is None
    assert sorted(records.keys()) == ["a", "b"]

    assert records.delete("a") is True
    assert records.delete("a") is False
    assert "a" not in records
    assert len(records) == 1


def test_record_map_rejects_invalid_key_and_none():
    """RecordMap.store validates the key and refuses None values."""
    records = RecordMap()
    with pytest.raises(ValidationError):
        records.store("bad key!", b"x")
    with pytest.raises(ValidationError, match="value is missing"):
        records.store("good", None)


def test_record_map_repr_hides_values():
    """repr() lists keys only."""
    records = RecordMap({"pw": b"hunter2"})
    assert "hunter2" not in repr(records)
    assert "pw" in repr(records)


# --- decoding ---

def test_decode_empty():
    """Empty plaintext decodes to an empty map."""
    assert len(decode_records(b"")) == 0


def test_decode_single_tuple():
    """A single {key:base64} tuple decodes to one record."""
    records = decode_records(b"{password:bXlfdmVyeV9zZWNyZXRfcGFzc3dvcmQ=}")
    assert records.keys() == ["password"]
    assert records.load("password") == b"my_very_secret_password"


def test_decode_multiple_tuples_and_empty_value():
    """Concatenated tuples decode, including a zero-length value."""
    data = _tuple(b"a", b"\x00\xff") + _tuple(b"b", b"") + _tuple(b"c-d_e", b"text")
    records = decode_records(data)
    assert sorted(records.keys()) == ["a", "b", "c-d_e"]
    assert records.load("a") == b"\x00\xff"
    assert records.load("b") == b""


def test_decode_missing_open_brace():
    """Input must start with '{'."""
    with pytest.raises(FormatError, match="expected '{'"):
        decode_records(b"a:YQ==}")


def test_decode_garbage_between_tuples():
    """Bytes between tuples are a FormatError."""
    with pytest.raises(FormatError, match="expected '{'"):
        decode_records(_tuple(b"a", b"1") + b"x" + _tuple(b"b", b"2"))


def test_decode_missing_close_brace():
    """An unterminated tuple is a FormatError."""
    with pytest.raises(FormatError, match="missing closing"):
        decode_records(b"{a:YQ==")


def test_decode_missing_separator():
    """A tuple without ':' is a FormatError."""
    with pytest.raises(FormatError, match="malformed key/value pair"):
        decode_records(b"{aYQ==}")


def test_decode_too_many_separators():
    """A tuple with more than one ':' is a FormatError."""
    with pytest.raises(FormatError, match="malformed key/value pair"):
        decode_records(b"{a:b:YQ==}")


def test_decode_bad_base64():
    """Values must be strict standard base64."""
    with pytest.raises(FormatError, match="malformed base64"):
        decode_records(b"{a:not base64!}")


def test_decode_invalid_key():
    """A decoded key outside the allowed set is a ValidationError."""
    with pytest.raises(ValidationError):
        decode_records(b"{bad key:YQ==}")


def test_decode_empty_key():
    """An empty decoded key is a ValidationError."""
    with pytest.raises(ValidationError, match="key is empty"):
        decode_records(b"{:YQ==}")


# --- encoding ---

def test_encode_empty():
    """An empty map encodes to empty plaintext."""
    assert encode_records(RecordMap()) == b""


def test_encode_single_tuple_exact():
    """One record encodes to exactly {key:base64value}."""
    records = RecordMap({"password": b"my_very_secret_password"})
    assert encode_records(records) == b"{password:bXlfdmVyeV9zZWNyZXRfcGFzc3dvcmQ=}"


def test_encode_decode_preserves_keys_and_values():
    """Tuple order is not significant; compare the decoded map only."""
    original = RecordMap({"a": b"1", "b": b"", "c": bytes(range(256))})
    decoded = decode_records(original.encode())
    assert decoded == original
    assert sorted(decoded.keys()) == ["a", "b", "c"]

"""
Record encoding for the decrypted store payload.

The plaintext is a plain concatenation of ``{key:base64(value)}`` tuples with no
separators and no defined order. There are no length prefixes: the whole blob
is authenticated by the cipher before it gets here, and stores are small.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Dict, Iterable, Iterator, Mapping, Optional

from .exceptions import FormatError, ValidationError

_VALID_KEY = re.compile(r"[A-Za-z0-9_-]+")


def is_valid_key(key: str) -> bool:
    """Return True if ``key`` is non-empty and only uses ``[A-Za-z0-9_-]``."""
    return isinstance(key, str) and _VALID_KEY.fullmatch(key) is not None


def validate_key(key: str) -> str:
    if not isinstance(key, str):
        raise ValidationError(f"key must be a string, not {type(key).__name__}")
    if key == "":
        raise ValidationError("key is empty")
    if not is_valid_key(key):
        raise ValidationError(
            f"key {key!r} contains invalid characters; only letters, digits, '-' and '_' are allowed"
        )
    return key


class RecordMap:
    """Validated mapping of record keys to opaque byte values."""

    __slots__ = ("_records",)

    def __init__(self, records: Optional[Mapping[str, bytes]] = None):
        self._records: Dict[str, bytes] = {}
        if records:
            for key, value in records.items():
                self.store(key, value)

    def store(self, key: str, value: bytes) -> None:
        validate_key(key)
        if value is None:
            raise ValidationError("value is missing")
        self._records[key] = bytes(value)

    def load(self, key: str) -> Optional[bytes]:
        return self._records.get(key)

    def delete(self, key: str) -> bool:
        """Remove ``key``; return False if it was not present."""
        return self._records.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RecordMap):
            return self._records == other._records
        return NotImplemented

    def __repr__(self) -> str:
        # values stay out of reprs
        return f"RecordMap(keys={sorted(self._records)!r})"

    def items(self) -> Iterable[tuple[str, bytes]]:
        return self._records.items()

    def encode(self) -> bytes:
        return encode_records(self)


def decode_records(data: bytes) -> RecordMap:
    """Parse a decrypted payload into a :class:`RecordMap`."""
    records = RecordMap()
    if not data:
        return records

    i = 0
    end = len(data)
    while i < end:
        if data[i:i + 1] != b"{":
            raise FormatError(
                f"expected '{{' for new key/value pair at offset {i}; got {data[i:i + 1]!r}"
            )
        close = data.find(b"}", i)
        if close == -1:
            raise FormatError("missing closing '}' for key/value pair")

        parts = data[i + 1:close].split(b":")
        if len(parts) != 2:
            raise FormatError(f"malformed key/value pair at offset {i}")
        raw_key, raw_value = parts

        try:
            key = raw_key.decode("ascii")
        except UnicodeDecodeError as exc:
            raise ValidationError("key contains invalid characters") from exc
        try:
            value = base64.b64decode(raw_value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise FormatError(f"malformed base64 value for key {key!r}") from exc

        records.store(key, value)
        i = close + 1

    return records


def encode_records(records: RecordMap) -> bytes:
    """Serialize ``records``; tuple order follows the mapping and is not significant."""
    out = bytearray()
    for key, value in records.items():
        out += b"{"
        out += key.encode("ascii")
        out += b":"
        out += base64.b64encode(value)
        out += b"}"
    return bytes(out)

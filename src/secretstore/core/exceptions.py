"""
Exceptions for the SecretStore engine
Everything derives from SecretStoreError so callers have one general catcher
"""


class SecretStoreError(Exception):
    # general container for errors
    pass


class StoreIOError(SecretStoreError):
    # raised when open/seek/read/write/truncate/close on the store file fails
    pass


class StoreClosedError(StoreIOError):
    # raised when an operation is attempted on a closed store
    pass


class FormatError(SecretStoreError):
    # raised on a truncated header, a malformed record tuple or bad base64
    pass


class CryptoError(SecretStoreError):
    # raised on entropy failure, cipher setup failure or a tag mismatch
    # (wrong passphrase or tampered payload)
    pass


class ValidationError(SecretStoreError):
    # raised for a key outside [A-Za-z0-9_-] or a missing value
    pass


class NotFoundError(SecretStoreError):
    # raised when the requested key DNE in the store
    pass

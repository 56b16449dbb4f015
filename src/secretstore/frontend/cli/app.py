"""Command-line front end for SecretStore.

Usage::

    secretstore --store secrets.store put KEY [VALUE]
    secretstore --store secrets.store get KEY [--copy]
    secretstore --store secrets.store delete KEY
    secretstore --store secrets.store list
    secretstore --store secrets.store info
    secretstore --store secrets.store forget

The passphrase is taken from ``--passphrase``, then ``SECRETSTORE_PASSPHRASE``,
then the OS keyring (with ``--keyring``), and finally an interactive prompt.

Exit codes: 0 on success, 1 when the store reports an error, 2 on usage errors.
"""

from __future__ import annotations

import argparse
import base64
import getpass
import logging
import sys
from typing import Callable, List, Optional, Tuple

import pyperclip

from secretstore.config import Settings, load_settings
from secretstore.core.exceptions import SecretStoreError, ValidationError
from secretstore.core.store import Store
from secretstore.frontend.cli.clipboard import copy_to_clipboard
from secretstore.frontend.cli.logging_config import configure_logging
from secretstore.security.keystore import (
    KeystoreError,
    account_for,
    delete_passphrase,
    load_passphrase,
    save_passphrase,
)
from secretstore.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1


def _build_arg_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secretstore",
        description="Manage an encrypted key/value store kept in a single file.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"secretstore {__version__}",
    )
    parser.add_argument(
        "-s",
        "--store",
        default=settings.store_path,
        help="Path to the store file (default: $SECRETSTORE_PATH)",
    )
    parser.add_argument(
        "--passphrase",
        default=None,
        help="Passphrase to use instead of asking interactively",
    )
    parser.add_argument(
        "--keyring",
        action="store_true",
        help="Read the passphrase from the OS keyring and remember it there after use",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    put = sub.add_parser("put", help="Store a value under KEY")
    put.add_argument("key", help="Letters, digits, '-' and '_' only")
    put.add_argument(
        "value",
        nargs="?",
        default=None,
        help="Value to store (default: read from stdin)",
    )

    get = sub.add_parser("get", help="Print the value stored under KEY")
    get.add_argument("key")
    get.add_argument(
        "--copy",
        action="store_true",
        help="Copy the value to the clipboard instead of printing it",
    )

    delete = sub.add_parser("delete", help="Remove KEY from the store")
    delete.add_argument("key")

    sub.add_parser("list", help="List all keys in the store")
    sub.add_parser("info", help="Show store revision, key count and KDF parameters")
    sub.add_parser("forget", help="Remove the remembered passphrase from the OS keyring")
    return parser


def resolve_passphrase(
    args: argparse.Namespace,
    settings: Settings,
    prompt: Optional[Callable[[str], str]] = None,
) -> Tuple[str, str]:
    """Return ``(passphrase, source)`` following the flag/env/keyring/prompt order."""
    prompt = prompt or getpass.getpass
    if args.passphrase:
        return args.passphrase, "flag"
    if settings.passphrase:
        return settings.passphrase, "env"
    if args.keyring:
        remembered = load_passphrase(settings.keyring_service, account_for(args.store))
        if remembered:
            return remembered, "keyring"
    passphrase = prompt("Passphrase: ")
    if not passphrase:
        raise ValidationError("passphrase must not be empty")
    return passphrase, "prompt"


def _read_value(args: argparse.Namespace) -> bytes:
    if args.value is not None:
        return args.value.encode("utf-8")
    return sys.stdin.buffer.read()


def _print_value(value: bytes) -> None:
    try:
        print(value.decode("utf-8"))
    except UnicodeDecodeError:
        print("value is binary; printing it base64-encoded", file=sys.stderr)
        print(base64.b64encode(value).decode("ascii"))


def _run_command(store: Store, args: argparse.Namespace) -> int:
    if args.command == "put":
        store.put(args.key, _read_value(args))
        print("Key/Value successfully stored.")
    elif args.command == "get":
        value = store.get(args.key)
        if args.copy:
            try:
                copy_to_clipboard(value)
            except UnicodeDecodeError:
                print("error: binary values cannot be copied to the clipboard", file=sys.stderr)
                return EXIT_ERROR
            except pyperclip.PyperclipException as exc:
                print(f"error: cannot access clipboard: {exc}", file=sys.stderr)
                return EXIT_ERROR
            print("Value copied to clipboard.")
        else:
            _print_value(value)
    elif args.command == "delete":
        store.delete(args.key)
        print("Key deleted.")
    elif args.command == "list":
        print("Stored keys:")
        for key in sorted(store.keys()):
            print(f"\t- {key}")
    elif args.command == "info":
        params = store.kdf_params()
        print(f"Store:      {store.path}")
        print(f"Revision:   {store.revision}")
        print(f"Keys:       {len(store.keys())}")
        print(f"KDF:        {params['algo']} ({params['iterations']} iterations)")
        print(f"Salt:       {params['salt']}")
    return EXIT_OK


def _remember_passphrase(settings: Settings, store_path: str, passphrase: str) -> None:
    # the command has already committed, so a keyring failure is only a warning
    try:
        save_passphrase(settings.keyring_service, account_for(store_path), passphrase)
    except KeystoreError as exc:
        print(f"warning: passphrase not remembered: {exc}", file=sys.stderr)
        return
    logger.debug("remembered passphrase for %s in the OS keyring", store_path)


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    settings = settings or load_settings()
    parser = _build_arg_parser(settings)
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else settings.log_level)

    if not args.store:
        parser.error("no store given; pass --store or set SECRETSTORE_PATH")

    try:
        if args.command == "forget":
            if delete_passphrase(settings.keyring_service, account_for(args.store)):
                print("Passphrase removed from the OS keyring.")
            else:
                print("No passphrase remembered for this store.")
            return EXIT_OK

        passphrase, source = resolve_passphrase(args, settings)
        with Store.open(args.store, passphrase) as store:
            code = _run_command(store, args)

        if args.keyring and source != "keyring" and code == EXIT_OK:
            _remember_passphrase(settings, args.store, passphrase)
        return code
    except SecretStoreError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except (KeyboardInterrupt, EOFError):
        print("\naborted", file=sys.stderr)
        return EXIT_ERROR


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover - CLI entry
    run()

"""Runtime settings for the SecretStore command-line front end.

Settings come from environment variables so scripts can drive the tool without
prompts; explicit command-line flags always win over these.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .security.keystore import DEFAULT_SERVICE

ENV_PATH = "SECRETSTORE_PATH"
ENV_PASSPHRASE = "SECRETSTORE_PASSPHRASE"
ENV_LOG_LEVEL = "SECRETSTORE_LOG_LEVEL"
ENV_KEYRING_SERVICE = "SECRETSTORE_KEYRING_SERVICE"


@dataclass
class Settings:
    """Container for environment-driven defaults."""

    store_path: Optional[str] = None
    passphrase: Optional[str] = None
    log_level: int = logging.WARNING
    keyring_service: str = DEFAULT_SERVICE


def _parse_level(value: Optional[str]) -> int:
    # Accept names ("debug") or numbers ("10"); fall back to WARNING.
    if not value:
        return logging.WARNING
    value = value.strip()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.WARNING


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        store_path=env.get(ENV_PATH) or None,
        passphrase=env.get(ENV_PASSPHRASE) or None,
        log_level=_parse_level(env.get(ENV_LOG_LEVEL)),
        keyring_service=env.get(ENV_KEYRING_SERVICE) or DEFAULT_SERVICE,
    )

"""Clipboard utilities for the CLI frontend.

Uses pyperclip for cross-platform clipboard access.
"""

from __future__ import annotations

import pyperclip


def copy_to_clipboard(value: bytes) -> None:
    """Copy a stored value to the system clipboard.

    Args:
        value: The raw value; it must be valid UTF-8 text.

    Raises:
        UnicodeDecodeError: If the value is binary.
        pyperclip.PyperclipException: If clipboard access fails.
    """
    pyperclip.copy(value.decode("utf-8"))

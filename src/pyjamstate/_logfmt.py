"""Helpers for compact debug logging.

Snapshot values can be arbitrarily large blobs (preimages are whole
programs). This keeps DEBUG lines readable.
"""

from __future__ import annotations

from typing import Any


def shorten_for_log(value: Any, *, max_string: int = 74) -> Any:
    """Return a shortened copy of *value* suitable for debug logs."""
    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<{len(value) - max_string} more>"
        return value
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    return value

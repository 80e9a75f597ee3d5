"""Redaction of credentials and account holder data in DEBUG traces.

The transport sends basic-auth credentials on every call, and the
``customeraccounts`` payload echoes the owner's name, e-mail and phone.
Vehicle telemetry is left readable.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "<redacted>"

# Compared case-insensitively.
_PRIVATE_KEYS = frozenset(
    {
        "authorization",
        "cookie",
        "password",
        "username",
        "x-device-id",
        "firstname",
        "lastname",
        "email",
        "phonenumber",
    }
)

_MAX_DEPTH = 20


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of *value* that is safe to put in a DEBUG log.

    Values under private keys are replaced, long strings are cut at
    *max_string* characters and raw bytes are summarised by length.
    """
    return _scrub(value, max_string, 0)


def _scrub(value: Any, max_string: int, depth: int) -> Any:
    if depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED if str(key).lower() in _PRIVATE_KEYS else _scrub(item, max_string, depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_scrub(item, max_string, depth + 1) for item in value]
    return repr(value)

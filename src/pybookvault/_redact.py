"""Helpers for safe debug logging.

GraphQL traffic can carry bearer tokens in headers and credentials inside
variables. Everything traced at DEBUG level passes through here first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_REDACTED = "<redacted>"
_MAX_DEPTH = 20

# Compared after lowercasing and dropping "-" and "_".
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "accesstoken",
        "refreshtoken",
        "authtoken",
        "authorization",
        "proxyauthorization",
        "cookie",
        "setcookie",
        "secret",
        "apikey",
        "xapikey",
    }
)


def _normalize_key(key: object) -> str:
    return str(key).lower().replace("_", "").replace("-", "")


def is_sensitive_key(key: object) -> bool:
    """Whether values stored under *key* must never be logged."""
    return _normalize_key(key) in _SENSITIVE_KEYS


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of HTTP *headers* with credential-bearing values masked."""
    return {name: _REDACTED if is_sensitive_key(name) else value for name, value in headers.items()}


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs.

    Mappings have sensitive keys masked, long strings are truncated and
    anything that is not plain JSON data is shown by ``repr``.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    match value:
        case None | bool() | int() | float():
            return value
        case str():
            return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
        case bytes() | bytearray():
            return f"<bytes:{len(value)}b>"
        case Mapping():
            return {
                str(key): _REDACTED
                if is_sensitive_key(key)
                else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
                for key, item in value.items()
            }
        case Sequence():
            return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
        case _:
            return repr(value)

"""Helpers for safe debug logging.

Client state often carries secrets (session tokens, passwords) in value
slots or record fields. This module masks such fields and truncates long
strings before state or diffs are written to DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pyzustate.config import DEFAULT_REDACT_KEYS


def _is_sensitive(key: str, keys: frozenset[str]) -> bool:
    lowered = key.lower()
    if lowered in keys:
        return True
    # Diff paths: ``values.token`` or ``collections.users[abc].password``.
    return lowered.rsplit(".", 1)[-1] in keys


def redact_for_log(
    value: Any,
    *,
    keys: frozenset[str] = DEFAULT_REDACT_KEYS,
    max_string: int = 256,
    _depth: int = 0,
) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if _is_sensitive(key, keys):
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, keys=keys, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [redact_for_log(v, keys=keys, max_string=max_string, _depth=_depth + 1) for v in value]

    # Fallback: represent unknown objects without dumping internals.
    return repr(value)

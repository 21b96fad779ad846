"""Store configuration for pyzustate."""

from __future__ import annotations

import dataclasses
import os
import time
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from pyzustate.exceptions import ZustateConfigError

PushHook = Callable[..., Any]
PullHook = Callable[..., Any]

DEFAULT_REDACT_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "accesstoken",
        "refreshtoken",
        "secret",
        "authorization",
        "cookie",
    }
)


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


def new_id() -> str:
    """Random 128-bit identifier rendered as a UUID string."""
    return str(uuid.uuid4())


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Store configuration.

    Parameters
    ----------
    initial : Mapping
        Complete initial state with a ``values`` mapping (slot name to
        primitive) and a ``collections`` mapping (name to list of records).
    push : callable or None
        ``push(store, get_diff)`` called after every state replacement.
        May return an awaitable, which is run detached.
    pull : callable or None
        ``pull(store, calc_diff)`` called once while the store is created.
        May return an awaitable, which is run detached.
    clock : callable
        Returns the current epoch time in milliseconds. Used to stamp
        ``updated`` on records.
    id_factory : callable
        Returns a new unique record id.
    validate : bool
        Check records, patches and values against the primitive-value
        constraint before committing them.
    log_changes : bool
        Emit a DEBUG log line with the (redacted) diff on every change.
    redact_keys : frozenset of str
        Lower-cased field names whose values are masked in debug logs.
    """

    initial: Mapping[str, Any]
    push: PushHook | None = None
    pull: PullHook | None = None
    clock: Callable[[], int] = now_ms
    id_factory: Callable[[], str] = new_id
    validate: bool = True
    log_changes: bool = False
    redact_keys: frozenset[str] = DEFAULT_REDACT_KEYS

    def __post_init__(self) -> None:
        if not callable(self.clock):
            raise ZustateConfigError("clock must be callable")
        if not callable(self.id_factory):
            raise ZustateConfigError("id_factory must be callable")
        if self.push is not None and not callable(self.push):
            raise ZustateConfigError("push hook must be callable")
        if self.pull is not None and not callable(self.pull):
            raise ZustateConfigError("pull hook must be callable")

    @classmethod
    def from_env(cls, initial: Mapping[str, Any], **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``PYZUSTATE_VALIDATE`` and ``PYZUSTATE_LOG_CHANGES``.
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        initial : Mapping
            Complete initial state.
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StoreConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {"initial": initial}

        if "validate" not in overrides:
            config_kwargs["validate"] = _env_bool(env.get("PYZUSTATE_VALIDATE"), True)
        if "log_changes" not in overrides:
            config_kwargs["log_changes"] = _env_bool(env.get("PYZUSTATE_LOG_CHANGES"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

"""Reactive in-memory state container.

This is the only component allowed to hold or replace the full state. Every
change goes through :meth:`StateStore.update` (or :meth:`replace_state`),
which swaps the state reference and notifies listeners synchronously, in
registration order, before returning.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

_logger = logging.getLogger(__name__)

State = dict[str, Any]
Listener = Callable[[State, State], None]
"""Called as ``listener(new_state, previous_state)``."""


class StateStore:
    """Holds one state snapshot and notifies subscribers when it is replaced.

    Snapshots are treated as immutable: a change always produces a new state
    dict, and unchanged sections keep their identity so subscribers can detect
    changes with an ``is`` check.

    Writes are serialized by a re-entrant lock held across "read snapshot,
    compute, replace, notify". Listeners may write to the store again from
    inside a notification.
    """

    def __init__(self, initial_state: State) -> None:
        self._state: State = initial_state
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()
        self._version = 0

    @property
    def version(self) -> int:
        """Number of replacements applied so far."""
        return self._version

    def get_state(self) -> State:
        """Return the current snapshot."""
        return self._state

    def replace_state(self, state: State) -> None:
        """Replace the whole state and notify listeners."""
        self.update(lambda _previous: state)

    def update(self, reducer: Callable[[State], State]) -> State:
        """Atomically derive and commit a new state.

        *reducer* receives the current snapshot and returns the next one. If it
        raises, nothing is replaced. Returning the same object is a no-op.
        """
        with self._lock:
            previous = self._state
            state = reducer(previous)
            if state is previous:
                return state
            self._state = state
            self._version += 1
            self._notify(state, previous)
            return state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self, state: State, previous: State) -> None:
        for listener in list(self._listeners):
            try:
                listener(state, previous)
            except Exception:
                _logger.exception("State listener %r failed", listener)

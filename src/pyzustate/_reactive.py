"""Slice-scoped reactive reads.

A :class:`Reactive` watches one slice of the state (a value slot or a
collection list). It re-derives its result lazily and only when the slice
reference changed; changes elsewhere in the state do not invalidate it.

The store only holds a weak reference to a reactive: once the caller drops
it, its subscription is removed.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pyzustate.state.store import Listener, State, StateStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")
S = TypeVar("S")

ReactiveListener = Callable[["Reactive[Any]"], None]


def _weak_listener(method: Callable[[State, State], None]) -> Listener:
    ref = weakref.WeakMethod(method)

    def listener(state: State, previous: State) -> None:
        on_change = ref()
        if on_change is not None:
            on_change(state, previous)

    return listener


class Reactive(Generic[T]):
    """Cached derivation of a state slice that tracks store changes.

    Parameters
    ----------
    store : StateStore
        Store to subscribe to.
    select : callable
        Picks the watched slice out of a full state.
    compute : callable
        Derives the result from the slice. Errors (for example a failed
        ``required`` check) are raised from :meth:`get`, not from the
        notification.
    """

    def __init__(
        self,
        store: StateStore,
        select: Callable[[State], S],
        compute: Callable[[S], T],
    ) -> None:
        self._select = select
        self._compute = compute
        self._lock = threading.Lock()
        self._slice: Any = select(store.get_state())
        self._value: T | None = None
        self._valid = False
        self._listeners: list[ReactiveListener] = []
        unsubscribe = store.subscribe(_weak_listener(self._on_change))
        self._detach = weakref.finalize(self, unsubscribe)

    def get(self) -> T:
        """Return the latest result, recomputing only if the slice changed."""
        with self._lock:
            if self._valid:
                return self._value  # type: ignore[return-value]
            slice_ = self._slice

        value = self._compute(slice_)

        with self._lock:
            # A change that landed during the compute keeps the cache invalid.
            if self._slice is slice_:
                self._value = value
                self._valid = True
        return value

    @property
    def value(self) -> T:
        return self.get()

    def invalidate(self) -> None:
        with self._lock:
            self._valid = False

    def subscribe(self, listener: ReactiveListener) -> Callable[[], None]:
        """Call *listener* with this reactive whenever its slice changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def closed(self) -> bool:
        return not self._detach.alive

    def close(self) -> None:
        """Detach from the store. The last result stays readable."""
        self._detach()
        self._listeners.clear()

    def __enter__(self) -> Reactive[T]:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _on_change(self, state: State, _previous: State) -> None:
        current = self._select(state)
        with self._lock:
            if current is self._slice:
                return
            self._slice = current
            self._valid = False
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                _logger.debug("Reactive listener failed", exc_info=True)

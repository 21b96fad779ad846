"""Push/pull sync hooks around a store.

``push`` is registered as a state listener and runs after every state
replacement; ``pull`` runs exactly once while the store is created. Neither
hook is awaited: an awaitable result is spawned detached, as a task on the
running event loop or, when no loop is running, on a daemon worker thread
with its own loop. No completion or ordering guarantee is made relative to
later mutations, and hook failures are logged at DEBUG but never retried or
re-raised.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import threading
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

from pyzustate._redact import redact_for_log
from pyzustate.config import DEFAULT_REDACT_KEYS, PullHook, PushHook
from pyzustate.state.diff import diff_states
from pyzustate.state.events import StateDiff
from pyzustate.state.store import State, StateStore

if TYPE_CHECKING:
    from pyzustate.store import Store

_logger = logging.getLogger(__name__)

GetDiff = Callable[[], StateDiff]


async def _guard(name: str, awaitable: Awaitable[Any]) -> None:
    try:
        await awaitable
    except Exception:
        _logger.debug("%s hook failed", name, exc_info=True)


def overlay_state(state: State, candidate: Mapping[str, Any]) -> State:
    """Return *state* with the sections present in *candidate* swapped in."""
    return {
        "values": {**state["values"], **(candidate.get("values") or {})},
        "collections": {**state["collections"], **(candidate.get("collections") or {})},
    }


class SyncCoordinator:
    """Dispatches the push and pull hooks of one store."""

    def __init__(
        self,
        state: StateStore,
        *,
        push: PushHook | None = None,
        pull: PullHook | None = None,
        log_changes: bool = False,
        redact_keys: frozenset[str] = DEFAULT_REDACT_KEYS,
    ) -> None:
        self._state = state
        self._push = push
        self._pull = pull
        self._log_changes = log_changes
        self._redact_keys = redact_keys
        self._store: Store | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._threads: set[threading.Thread] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def attach(self, store: Store) -> None:
        """Register the push listener and run the pull hook once."""
        self._store = store
        if self._push is not None or self._log_changes:
            self._unsubscribe = self._state.subscribe(self._on_change)
        if self._pull is not None:
            _logger.debug("Running pull hook")
            self._call("pull", self._pull, store, self.calc_diff)

    def close(self) -> None:
        """Stop pushing changes. Detached hooks already running are left alone."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def pending(self) -> list[asyncio.Task[None]]:
        """Detached hook tasks on the event loop that have not finished yet."""
        return [task for task in self._tasks if not task.done()]

    async def drain(self) -> None:
        """Wait for detached hook tasks spawned on the current loop."""
        while self.pending:
            await asyncio.gather(*self.pending, return_exceptions=True)

    def join(self, timeout: float | None = None) -> None:
        """Wait for detached hook threads (spawned when no loop was running)."""
        for thread in list(self._threads):
            thread.join(timeout)

    # ------------------------------------------------------------------
    # Diffs
    # ------------------------------------------------------------------

    def calc_diff(self, candidate: Mapping[str, Any]) -> StateDiff:
        """Diff the current state against *candidate* without mutating anything.

        *candidate* may carry ``values`` and/or ``collections``; the sections
        it provides replace the current ones for the comparison.
        """
        current = self._state.get_state()
        return diff_states(current, overlay_state(current, candidate))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _on_change(self, state: State, previous: State) -> None:
        get_diff: GetDiff = functools.cache(lambda: diff_states(previous, state))

        if self._log_changes and _logger.isEnabledFor(logging.DEBUG):
            changes = {change.path: change.current for change in get_diff().changes}
            _logger.debug(
                "State v%d changed: %s",
                self._state.version,
                redact_for_log(changes, keys=self._redact_keys),
            )

        if self._push is not None:
            self._call("push", self._push, self._store, get_diff)

    def _call(self, name: str, hook: Callable[..., Any], *args: Any) -> None:
        try:
            result = hook(*args)
        except Exception:
            _logger.debug("%s hook failed", name, exc_info=True)
            return
        if inspect.isawaitable(result):
            self._spawn(name, result)

    def _spawn(self, name: str, awaitable: Awaitable[Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(_guard(name, awaitable), name=f"pyzustate-{name}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            _logger.debug("%s hook detached as task %s", name, task.get_name())
            return

        thread = threading.Thread(
            target=self._run_in_thread,
            args=(name, awaitable),
            name=f"pyzustate-{name}",
            daemon=True,
        )
        self._threads.add(thread)
        thread.start()
        _logger.debug("%s hook detached on thread %s", name, thread.name)

    def _run_in_thread(self, name: str, awaitable: Awaitable[Any]) -> None:
        try:
            asyncio.run(_guard(name, awaitable))
        finally:
            self._threads.discard(threading.current_thread())

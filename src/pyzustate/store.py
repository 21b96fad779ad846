"""Store facade: the object callers work with."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any, Generic, TypeVar, overload

from pyzustate.collection import Collection
from pyzustate.config import PullHook, PushHook, StoreConfig
from pyzustate.models.state import build_state
from pyzustate.state.store import Listener, State, StateStore
from pyzustate.sync import SyncCoordinator
from pyzustate.value import ValueSlot

_logger = logging.getLogger(__name__)

H = TypeVar("H")


class Handles(Mapping[str, H], Generic[H]):
    """Read-only name-to-handle mapping that also allows attribute access.

    ``store.values["user"]`` and ``store.values.user`` are the same handle.
    Names that collide with a mapping method (``items``, ``keys``,
    ``values``, ``get``) resolve to the method on attribute access; use
    ``store.collections["items"]`` for those.
    """

    def __init__(self, handles: dict[str, H]) -> None:
        self._handles = handles

    def __getitem__(self, name: str) -> H:
        return self._handles[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def __getattr__(self, name: str) -> H:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._handles[name]
        except KeyError:
            raise AttributeError(name) from None

    def __repr__(self) -> str:
        return f"Handles({sorted(self._handles)})"


class Store:
    """Value slots and collections backed by one :class:`StateStore`.

    The pull hook, if configured, runs at the end of construction.

    Usage::

        store = pyzustate.create({
            "values": {"user": None},
            "collections": {"tasks": []},
        })
        store.collections.tasks.add({"title": "write docs"})
        store.values.user.set("ada")
    """

    def __init__(self, config: StoreConfig) -> None:
        self._config = config
        self.internal = StateStore(build_state(config.initial, validate=config.validate))

        initial = self.internal.get_state()
        self.values: Handles[ValueSlot] = Handles(
            {
                name: ValueSlot(
                    self.internal,
                    name,
                    validate=config.validate,
                    redact_keys=config.redact_keys,
                )
                for name in initial["values"]
            }
        )
        self.collections: Handles[Collection] = Handles(
            {
                name: Collection(
                    self.internal,
                    name,
                    clock=config.clock,
                    id_factory=config.id_factory,
                    validate=config.validate,
                )
                for name in initial["collections"]
            }
        )
        self.sync = SyncCoordinator(
            self.internal,
            push=config.push,
            pull=config.pull,
            log_changes=config.log_changes,
            redact_keys=config.redact_keys,
        )
        self.sync.attach(self)

    @property
    def config(self) -> StoreConfig:
        return self._config

    def get_state(self) -> State:
        """Return the current full state snapshot."""
        return self.internal.get_state()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(new_state, previous_state)`` after every change."""
        return self.internal.subscribe(listener)

    def __repr__(self) -> str:
        return f"Store(values={list(self.values)}, collections={list(self.collections)})"


@overload
def create(config: StoreConfig, /) -> Store: ...


@overload
def create(
    initial: Mapping[str, Any],
    /,
    *,
    push: PushHook | None = None,
    pull: PullHook | None = None,
    **options: Any,
) -> Store: ...


def create(
    initial: Mapping[str, Any] | StoreConfig,
    /,
    *,
    push: PushHook | None = None,
    pull: PullHook | None = None,
    **options: Any,
) -> Store:
    """Create a store.

    Accepts either a :class:`StoreConfig` or the initial state plus hooks and
    any other :class:`StoreConfig` field as keyword arguments. The pull hook,
    if any, has run by the time the store is returned.
    """
    if isinstance(initial, StoreConfig):
        config = initial
    else:
        config = StoreConfig(initial=initial, push=push, pull=pull, **options)

    store = Store(config)
    _logger.debug(
        "Store created values=%s collections=%s",
        list(store.values),
        list(store.collections),
    )
    return store

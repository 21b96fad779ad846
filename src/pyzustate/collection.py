"""Collection handles.

A :class:`Collection` binds the pure operations in
:mod:`pyzustate._ops.collection` to one named collection of one store. Reads
work on a fresh snapshot; writes compute the complete new list and commit it
with a single :meth:`StateStore.update`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pyzustate._ops import collection as _ops
from pyzustate._ops.selectors import ids_of
from pyzustate._reactive import Reactive
from pyzustate.config import new_id, now_ms
from pyzustate.models._base import Item
from pyzustate.state.store import State, StateStore

_logger = logging.getLogger(__name__)


class Collection:
    """CRUD access to one named collection of records."""

    def __init__(
        self,
        store: StateStore,
        name: str,
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_id,
        validate: bool = True,
    ) -> None:
        self._store = store
        self._name = name
        self._clock = clock
        self._id_factory = id_factory
        self._validate = validate

    @property
    def name(self) -> str:
        return self._name

    def _records(self) -> list[Item]:
        return self._store.get_state()["collections"][self._name]

    def _commit(self, operation: str, compute: Callable[[list[Item]], list[Item]]) -> list[Item]:
        name = self._name
        result: list[Item] = []

        def reducer(previous: State) -> State:
            nonlocal result
            result = compute(previous["collections"][name])
            return {**previous, "collections": {**previous["collections"], name: result}}

        self._store.update(reducer)
        _logger.debug("Collection %s %s committed, %d records", name, operation, len(result))
        return list(result)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all(self) -> list[Item]:
        """Return every record, as a new list."""
        return list(self._records())

    def get(self, selector: Any, count: int = 0, required: bool = False) -> Item | list[Item] | None:
        """Select records.

        Parameters
        ----------
        selector
            An id (returns one record or ``None``), a list of ids, a predicate,
            a ``{field: value}`` / ``{field: [values]}`` mapping, or ``None``
            (matches nothing). The non-id forms return a list.
        count : int
            Maximum number of matches; ``0`` means unbounded. The earliest
            matches in collection order win.
        required : bool
            Raise :class:`ItemNotFoundError` when an id is missing, or
            :class:`CountMismatchError` when fewer than *count* records match.
        """
        return _ops.get_items(self._records(), selector, count, required)

    def aggregate(self, selector: str | Callable[[Item], Any]) -> dict[str, int]:
        """Count records per distinct value of a field (or of a derived value)."""
        return _ops.aggregate_items(self._records(), selector)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, items: Any, position: _ops.Position = "end") -> list[Item]:
        """Add one record or a list of records.

        Returns the whole resulting collection, not only the new records.
        """
        return self._commit(
            "add",
            lambda records: _ops.add_items(
                records,
                items,
                position,
                clock=self._clock,
                id_factory=self._id_factory,
                validate=self._validate,
            ),
        )

    def set(self, patches: Any, strict: bool = False) -> list[Item]:
        """Merge one patch or a list of patches into the records they name.

        Each patch needs an ``id``. Returns the whole resulting collection.
        With *strict*, an id missing from the collection raises
        :class:`StrictSetMismatchError` and nothing is written.
        """
        return self._commit(
            "set",
            lambda records: _ops.set_items(
                records,
                patches,
                strict,
                clock=self._clock,
                validate=self._validate,
            ),
        )

    def remove(self, ids_or_items: Any) -> list[Item]:
        """Remove records by id or by record. Returns the surviving records."""
        ids = ids_of(ids_or_items)
        return self._commit("remove", lambda records: _ops.remove_items(records, ids))

    # ------------------------------------------------------------------
    # Reactive reads
    # ------------------------------------------------------------------

    def use_get(self, selector: Any, count: int = 0, required: bool = False) -> Reactive[Any]:
        """Reactive :meth:`get`, recomputed only when this collection changes."""
        name = self._name
        return Reactive(
            self._store,
            lambda state: state["collections"][name],
            lambda records: _ops.get_items(records, selector, count, required),
        )

    def use_aggregate(self, selector: str | Callable[[Item], Any]) -> Reactive[dict[str, int]]:
        """Reactive :meth:`aggregate`, recomputed only when this collection changes."""
        name = self._name
        return Reactive(
            self._store,
            lambda state: state["collections"][name],
            lambda records: _ops.aggregate_items(records, selector),
        )

    def __len__(self) -> int:
        return len(self._records())

    def __repr__(self) -> str:
        return f"Collection(name={self._name!r})"

"""Value slot handles."""

from __future__ import annotations

import logging
from collections.abc import Callable

from pyzustate._reactive import Reactive
from pyzustate._redact import redact_for_log
from pyzustate.config import DEFAULT_REDACT_KEYS
from pyzustate.exceptions import ValueRequiredError
from pyzustate.models._base import Primitive, check_value
from pyzustate.state.store import State, StateStore

_logger = logging.getLogger(__name__)


def _require(name: str, value: Primitive, required: bool) -> Primitive:
    if required and value is None:
        raise ValueRequiredError(f"Value {name!r} is required", name=name)
    return value


class ValueSlot:
    """Read and write access to one named scalar in a store."""

    def __init__(
        self,
        store: StateStore,
        name: str,
        *,
        validate: bool = True,
        redact_keys: frozenset[str] = DEFAULT_REDACT_KEYS,
    ) -> None:
        self._store = store
        self._name = name
        self._validate = validate
        self._redact_keys = redact_keys

    @property
    def name(self) -> str:
        return self._name

    def get(self, required: bool = False) -> Primitive:
        """Return the current value.

        Raises :class:`ValueRequiredError` if *required* and the value is ``None``.
        """
        return _require(self._name, self._store.get_state()["values"].get(self._name), required)

    def set(self, value: Primitive | Callable[[Primitive], Primitive]) -> None:
        """Replace the value.

        A callable receives the current value and returns the new one; it runs
        inside the same atomic update as the write.
        """
        name = self._name

        def reducer(previous: State) -> State:
            current = previous["values"].get(name)
            new_value = value(current) if callable(value) else value
            if self._validate:
                check_value(new_value, name=name)
            return {**previous, "values": {**previous["values"], name: new_value}}

        state = self._store.update(reducer)
        redacted = redact_for_log({name: state["values"][name]}, keys=self._redact_keys)
        _logger.debug("Value %s set to %s", name, redacted[name])

    def use_get(self, required: bool = False) -> Reactive[Primitive]:
        """Reactive read of this slot, recomputed only when the slot changes."""
        name = self._name
        return Reactive(
            self._store,
            lambda state: state["values"].get(name),
            lambda value: _require(name, value, required),
        )

    def __repr__(self) -> str:
        return f"ValueSlot(name={self._name!r})"

"""Initial state model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pyzustate.exceptions import InvalidItemError, InvalidStateError
from pyzustate.models._base import check_record, check_value


class InitialState(BaseModel):
    """Shape of the state handed to :func:`pyzustate.create`.

    Only the container layout is modelled here; record contents are checked
    separately so that records are never copied or coerced.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    values: dict[str, Any] = Field(default_factory=dict)
    collections: dict[str, list[Any]] = Field(default_factory=dict)


def build_state(initial: Mapping[str, Any], *, validate: bool = True) -> dict[str, Any]:
    """Return the internal state dict for *initial*.

    The ``values`` and ``collections`` containers are copied; records are
    kept by reference.
    """
    if not isinstance(initial, Mapping):
        raise InvalidStateError(f"Initial state must be a mapping, got {type(initial).__name__}")
    try:
        InitialState.model_validate(dict(initial))
    except ValidationError as exc:
        error = exc.errors()[0]
        location = ".".join(str(part) for part in error.get("loc", ()))
        raise InvalidStateError(f"Malformed initial state at {location!r}: {error.get('msg')}") from exc

    values = dict(initial.get("values") or {})
    collections = {name: list(records) for name, records in (initial.get("collections") or {}).items()}

    if validate:
        try:
            for name, value in values.items():
                check_value(value, name=name)
            for name, records in collections.items():
                for record in records:
                    check_record(record)
        except InvalidItemError as exc:
            raise InvalidStateError(f"Invalid initial state: {exc}") from exc

    return {"values": values, "collections": collections}

"""Primitive types and shape checks for store records.

Every record held in a collection is a flat mapping whose values are
primitives: ``str``, ``int``, ``float``, ``bool``, ``None`` or a ``list`` of
those. Nested mappings are not allowed; related data belongs in a second
collection that shares the same ``id``.

The checks here use pydantic strict types so that nothing is coerced. The
validated output is discarded: records keep their identity once stored.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from pydantic import ConfigDict, StrictBool, StrictFloat, StrictInt, StrictStr, TypeAdapter, ValidationError

from pyzustate.exceptions import InvalidItemError

Scalar = Union[str, int, float, bool, None]
Primitive = Union[Scalar, list[Scalar]]
Item = dict[str, Primitive]
"""A collection record. Always carries ``id`` (str) and ``updated`` (epoch ms)."""

_StrictScalar = Union[StrictStr, StrictInt, StrictFloat, StrictBool, None]
_StrictPrimitive = Union[_StrictScalar, list[_StrictScalar]]

# Strict mode also stops lists from accepting tuples, sets and frozensets.
_STRICT = ConfigDict(strict=True)
_VALUE_ADAPTER: TypeAdapter[Any] = TypeAdapter(_StrictPrimitive, config=_STRICT)
_FIELDS_ADAPTER: TypeAdapter[Any] = TypeAdapter(dict[StrictStr, _StrictPrimitive], config=_STRICT)


def _describe(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def check_value(value: Any, *, name: str = "") -> None:
    """Raise :class:`InvalidItemError` unless *value* is a primitive."""
    try:
        _VALUE_ADAPTER.validate_python(value)
    except ValidationError as exc:
        label = f"value {name!r}" if name else "value"
        raise InvalidItemError(f"Invalid {label}: {_describe(exc)}") from exc


def check_fields(fields: Any, *, what: str = "record") -> None:
    """Raise :class:`InvalidItemError` unless *fields* is a flat primitive mapping."""
    if not isinstance(fields, Mapping):
        raise InvalidItemError(f"Invalid {what}: expected a mapping, got {type(fields).__name__}")
    try:
        _FIELDS_ADAPTER.validate_python(dict(fields))
    except ValidationError as exc:
        raise InvalidItemError(f"Invalid {what} field {_describe(exc)}") from exc


def check_record(record: Any) -> None:
    """Check a complete record, including the mandatory ``id``/``updated`` fields."""
    check_fields(record)
    item_id = record.get("id")
    if not isinstance(item_id, str):
        raise InvalidItemError(f"Record is missing a string 'id': {item_id!r}")
    updated = record.get("updated")
    if isinstance(updated, bool) or not isinstance(updated, int):
        raise InvalidItemError(f"Record {item_id!r} is missing an integer 'updated': {updated!r}")

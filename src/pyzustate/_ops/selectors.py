"""Selector variants and their resolution into record predicates.

A selection argument arrives in one of several shapes (an id, a list of ids,
a predicate, a field-match mapping or ``None``). :func:`to_selector` turns it
into one explicit variant once, and :func:`resolve` turns that variant into a
predicate over records.

It is internal to pyzustate and may change at any time.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from pyzustate.exceptions import InvalidSelectorError

Predicate = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True, slots=True)
class MatchNothing:
    """Selects no records (the ``None`` selector)."""


@dataclass(frozen=True, slots=True)
class ById:
    item_id: str


@dataclass(frozen=True, slots=True)
class ByIds:
    item_ids: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ByPredicate:
    predicate: Predicate


@dataclass(frozen=True, slots=True)
class ByMatch:
    """Field-match selector.

    Each field must equal the given scalar, or be a member of the given list.
    All fields must match.
    """

    fields: tuple[tuple[str, Any], ...]


Selector = Union[MatchNothing, ById, ByIds, ByPredicate, ByMatch]

_SELECTOR_TYPES = (MatchNothing, ById, ByIds, ByPredicate, ByMatch)


def to_selector(raw: Any) -> Selector:
    """Coerce a raw selection argument into a selector variant."""
    if isinstance(raw, _SELECTOR_TYPES):
        return raw
    if raw is None:
        return MatchNothing()
    if isinstance(raw, str):
        return ById(raw)
    if isinstance(raw, Mapping):
        return ByMatch(tuple(raw.items()))
    if callable(raw):
        return ByPredicate(raw)
    if isinstance(raw, (list, tuple, set, frozenset)):
        ids = tuple(raw)
        if not all(isinstance(item_id, str) for item_id in ids):
            raise InvalidSelectorError("An id list selector may only contain strings")
        return ByIds(ids)
    raise InvalidSelectorError(f"Unsupported selector type: {type(raw).__name__}")


def _equal(actual: Any, expected: Any) -> bool:
    # True == 1 in Python, but a boolean field must not match a number.
    return actual == expected and isinstance(actual, bool) == isinstance(expected, bool)


def _field_matches(record: Mapping[str, Any], field: str, expected: Any) -> bool:
    actual = record.get(field)
    if isinstance(expected, (list, tuple, set, frozenset)):
        return any(_equal(actual, option) for option in expected)
    return _equal(actual, expected)


def resolve(selector: Selector) -> Predicate:
    """Return the predicate a selector stands for."""
    if isinstance(selector, MatchNothing):
        return lambda _record: False
    if isinstance(selector, ById):
        item_id = selector.item_id
        return lambda record: record.get("id") == item_id
    if isinstance(selector, ByIds):
        ids = frozenset(selector.item_ids)
        return lambda record: record.get("id") in ids
    if isinstance(selector, ByPredicate):
        return selector.predicate
    if isinstance(selector, ByMatch):
        fields = selector.fields
        return lambda record: all(_field_matches(record, field, expected) for field, expected in fields)
    raise InvalidSelectorError(f"Unsupported selector: {selector!r}")


def ids_of(items: Any) -> set[str]:
    """Normalize an id, a record, or an iterable of ids/records to a set of ids."""
    if isinstance(items, str):
        return {items}
    if isinstance(items, Mapping):
        return {_record_id(items)}
    result: set[str] = set()
    for item in _iter(items):
        if isinstance(item, str):
            result.add(item)
        elif isinstance(item, Mapping):
            result.add(_record_id(item))
        else:
            raise InvalidSelectorError(f"Expected an id or a record, got {type(item).__name__}")
    return result


def _iter(items: Any) -> Iterable[Any]:
    try:
        return iter(items)
    except TypeError as exc:
        raise InvalidSelectorError(f"Expected ids or records, got {type(items).__name__}") from exc


def _record_id(record: Mapping[str, Any]) -> str:
    item_id = record.get("id")
    if not isinstance(item_id, str):
        raise InvalidSelectorError(f"Record has no string 'id': {item_id!r}")
    return item_id

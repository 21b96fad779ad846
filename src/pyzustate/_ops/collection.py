"""CRUD operations over a collection snapshot.

Every function here is pure: it takes the current list of records plus the
call arguments and returns a new list (or a read result). Nothing is
committed; :class:`pyzustate.collection.Collection` does that. Any error is
raised before a result exists, so a failed call never leaves a partially
applied collection behind.

All operations are linear scans.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from decimal import Decimal
from typing import Any, Literal

from pyzustate._ops.selectors import ById, resolve, to_selector
from pyzustate.exceptions import (
    CountMismatchError,
    InvalidItemError,
    InvalidSelectorError,
    ItemNotFoundError,
    StrictSetMismatchError,
)
from pyzustate.models._base import Item, check_fields, check_record

Position = Literal["start", "end"]

_UNDEFINED: Any = object()


def _as_list(items: Any) -> list[Any]:
    if isinstance(items, Mapping):
        return [items]
    return list(items)


def get_items(
    records: Sequence[Item],
    selector: Any,
    count: int = 0,
    required: bool = False,
) -> Item | list[Item] | None:
    """Select records.

    An id selector returns the first record with that id (or ``None``). Any
    other selector returns a list of matches in collection order, capped at
    *count* when it is non-zero. The scan stops as soon as the cap is reached,
    so the earliest matches win.
    """
    if count < 0:
        raise InvalidSelectorError(f"count must not be negative, got {count}")

    resolved = to_selector(selector)

    if isinstance(resolved, ById):
        if count > 1:
            raise InvalidSelectorError("Cannot combine an id selector with a count greater than one")
        for record in records:
            if record.get("id") == resolved.item_id:
                return record
        if required:
            raise ItemNotFoundError(f"Item {resolved.item_id!r} not found", item_id=resolved.item_id)
        return None

    predicate = resolve(resolved)
    result: list[Item] = []
    for record in records:
        if count and len(result) >= count:
            break
        if predicate(record):
            result.append(record)

    if count and required and len(result) < count:
        raise CountMismatchError(
            f"Expected {count} items but found {len(result)}",
            expected=count,
            found=len(result),
        )
    return result


def add_items(
    records: Sequence[Item],
    items: Any,
    position: Position = "end",
    *,
    clock: Callable[[], int],
    id_factory: Callable[[], str],
    validate: bool = True,
) -> list[Item]:
    """Return the collection with *items* added at *position*.

    A missing ``id`` is generated and a missing ``updated`` is stamped with
    the current time. Input order is preserved.
    """
    if position not in ("start", "end"):
        raise ValueError(f"position must be 'start' or 'end', got {position!r}")

    now = clock()
    addition: list[Item] = []
    for item in _as_list(items):
        if not isinstance(item, Mapping):
            raise InvalidItemError(f"Invalid record: expected a mapping, got {type(item).__name__}")
        record = {
            **item,
            "id": item.get("id") or id_factory(),
            "updated": item.get("updated") or now,
        }
        if validate:
            check_record(record)
        addition.append(record)

    if position == "start":
        return [*addition, *records]
    return [*records, *addition]


def set_items(
    records: Sequence[Item],
    patches: Any,
    strict: bool = False,
    *,
    clock: Callable[[], int],
    validate: bool = True,
) -> list[Item]:
    """Return the collection with *patches* merged into matching records.

    Each matched record becomes ``{**record, **patch}`` with ``updated``
    refreshed. When several patches carry the same id, the first one is used.
    Unmatched patch ids are ignored unless *strict* is set.
    """
    by_id: dict[str, Mapping[str, Any]] = {}
    for patch in _as_list(patches):
        if validate:
            check_fields(patch, what="patch")
        elif not isinstance(patch, Mapping):
            raise InvalidItemError(f"Invalid patch: expected a mapping, got {type(patch).__name__}")
        item_id = patch.get("id")
        if not isinstance(item_id, str):
            raise InvalidItemError(f"Patch is missing a string 'id': {item_id!r}")
        by_id.setdefault(item_id, patch)

    now = clock()
    matched: set[str] = set()
    result: list[Item] = []
    for record in records:
        patch = by_id.get(record.get("id"))  # type: ignore[arg-type]
        if patch is None:
            result.append(record)
            continue
        matched.add(patch["id"])
        result.append({**record, **patch, "updated": now})

    if strict:
        for item_id in by_id:
            if item_id not in matched:
                raise StrictSetMismatchError(f"Item with id {item_id!r} not found", item_id=item_id)

    return result


def remove_items(records: Sequence[Item], ids: set[str]) -> list[Item]:
    """Return the records whose id is not in *ids*."""
    return [record for record in records if record.get("id") not in ids]


def _js_number(value: float) -> str:
    """Render a finite float the way JavaScript's ``String(number)`` does."""
    if value == 0:
        return "0"
    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    text = "".join(map(str, digits))
    k = len(text)
    n = int(exponent) + k
    prefix = "-" if sign else ""
    if k <= n <= 21:
        return prefix + text + "0" * (n - k)
    if 0 < n <= 21:
        return f"{prefix}{text[:n]}.{text[n:]}"
    if -6 < n <= 0:
        return prefix + "0." + "0" * -n + text
    mantissa = text if k == 1 else f"{text[0]}.{text[1:]}"
    return f"{prefix}{mantissa}e{n - 1:+d}"


def bucket_key(value: Any) -> str:
    """Render an aggregate bucket key.

    Keys follow the JavaScript string conversion the record format comes
    from, so booleans become ``"true"``/``"false"``, ``None`` becomes
    ``"null"`` and a missing field becomes ``"undefined"``.
    """
    if value is _UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return _js_number(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if part is None else bucket_key(part) for part in value)
    return str(value)


def aggregate_items(
    records: Sequence[Item],
    selector: str | Callable[[Item], Any],
) -> dict[str, int]:
    """Count records per distinct field value (or derived value).

    Keys appear in order of first occurrence.
    """
    if not callable(selector) and not isinstance(selector, str):
        raise InvalidSelectorError(
            f"Aggregate selector must be a field name or callable, got {type(selector).__name__}"
        )

    result: dict[str, int] = {}
    for record in records:
        value = selector(record) if callable(selector) else record.get(selector, _UNDEFINED)
        key = bucket_key(value)
        result[key] = result.get(key, 0) + 1
    return result

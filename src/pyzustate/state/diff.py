"""Structural diff between two state snapshots.

Both snapshots are flattened into dotted paths first:

- ``values.<slot>`` for value slots
- ``collections.<name>[<id>].<field>`` for record fields

Records are keyed by id rather than by position, so inserting at the start
of a collection does not show up as a change to every later record. List
fields are compared as a whole. A change in the relative order of records
present in both snapshots is reported once per collection as an ``order``
change.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pyzustate.state.events import ChangeStatus, FieldChange, StateDiff

_MISSING: Any = object()


def flatten_state(state: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a full state into ``{path: value}``."""
    out: dict[str, Any] = {}
    for name, value in (state.get("values") or {}).items():
        out[f"values.{name}"] = value
    for name, records in (state.get("collections") or {}).items():
        for record in records:
            prefix = f"collections.{name}[{record.get('id')}]"
            for field, value in record.items():
                out[f"{prefix}.{field}"] = value
    return out


def _same(old: Any, new: Any) -> bool:
    # 1 == True in Python; a type change is still a change.
    return type(old) is type(new) and old == new


def diff_flatmaps(before: Mapping[str, Any], after: Mapping[str, Any]) -> list[FieldChange]:
    """Return a change entry for every path whose value differs."""
    changes: list[FieldChange] = []
    for path, old in before.items():
        new = after.get(path, _MISSING)
        if new is _MISSING:
            changes.append(FieldChange(path=path, status=ChangeStatus.DELETED, previous=old))
        elif not _same(old, new):
            changes.append(FieldChange(path=path, status=ChangeStatus.UPDATED, previous=old, current=new))
    for path, new in after.items():
        if path not in before:
            changes.append(FieldChange(path=path, status=ChangeStatus.ADDED, current=new))
    return changes


def _order_changes(before: Mapping[str, Any], after: Mapping[str, Any]) -> list[FieldChange]:
    changes: list[FieldChange] = []
    old_collections: Mapping[str, Sequence[Any]] = before.get("collections") or {}
    new_collections: Mapping[str, Sequence[Any]] = after.get("collections") or {}
    for name, old_records in old_collections.items():
        new_records = new_collections.get(name)
        if new_records is None or new_records is old_records:
            continue
        old_ids = [record.get("id") for record in old_records]
        new_ids = [record.get("id") for record in new_records]
        shared = set(old_ids) & set(new_ids)
        if [i for i in old_ids if i in shared] != [i for i in new_ids if i in shared]:
            changes.append(
                FieldChange(
                    path=f"collections.{name}",
                    status=ChangeStatus.ORDER,
                    previous=old_ids,
                    current=new_ids,
                )
            )
    return changes


def diff_states(previous: Mapping[str, Any], current: Mapping[str, Any]) -> StateDiff:
    """Compute the structural difference between two full states."""
    if previous is current:
        return StateDiff()
    changes = diff_flatmaps(flatten_state(previous), flatten_state(current))
    changes.extend(_order_changes(previous, current))
    return StateDiff(changes=changes)

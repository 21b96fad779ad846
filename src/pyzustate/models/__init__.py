"""Data models for store state."""

from pyzustate.models._base import Item, Primitive, Scalar, check_fields, check_record, check_value
from pyzustate.models.state import InitialState, build_state

__all__ = [
    "InitialState",
    "Item",
    "Primitive",
    "Scalar",
    "build_state",
    "check_fields",
    "check_record",
    "check_value",
]

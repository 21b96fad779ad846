"""Custom exception hierarchy for pyzustate."""

from __future__ import annotations


class ZustateError(Exception):
    """Base exception for all pyzustate errors."""


class ZustateConfigError(ZustateError):
    """Invalid or missing configuration."""


class InvalidStateError(ZustateError):
    """Initial state does not have the ``values``/``collections`` shape."""


class InvalidItemError(ZustateError):
    """A record, patch or value breaks the primitive-value constraint.

    Also raised for a ``set`` patch without an ``id``.
    """


class ValueRequiredError(ZustateError):
    """A required value slot read returned ``None``."""

    def __init__(self, message: str, *, name: str = "") -> None:
        self.name = name
        super().__init__(message)


class ItemNotFoundError(ZustateError):
    """A required lookup by id found no record."""

    def __init__(self, message: str, *, item_id: str = "") -> None:
        self.item_id = item_id
        super().__init__(message)


class CountMismatchError(ZustateError):
    """A required count-bounded lookup found fewer records than requested."""

    def __init__(self, message: str, *, expected: int = 0, found: int = 0) -> None:
        self.expected = expected
        self.found = found
        super().__init__(message)


class InvalidSelectorError(ZustateError):
    """Selector argument cannot be used for the requested operation.

    Raised when an id selector is combined with a count greater than one,
    when the count is negative, or when the argument is not one of the
    supported selector shapes.
    """


class StrictSetMismatchError(ZustateError):
    """A strict ``set`` referenced an id that is not in the collection."""

    def __init__(self, message: str, *, item_id: str = "") -> None:
        self.item_id = item_id
        super().__init__(message)

"""pyzustate - Typed in-memory state of values and record collections."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyzustate")
except PackageNotFoundError:
    __version__ = "0+local"
from pyzustate._ops.selectors import ById, ByIds, ByMatch, ByPredicate, MatchNothing, Selector
from pyzustate._reactive import Reactive
from pyzustate.collection import Collection
from pyzustate.config import StoreConfig
from pyzustate.exceptions import (
    CountMismatchError,
    InvalidItemError,
    InvalidSelectorError,
    InvalidStateError,
    ItemNotFoundError,
    StrictSetMismatchError,
    ValueRequiredError,
    ZustateConfigError,
    ZustateError,
)
from pyzustate.models import Item, Primitive
from pyzustate.state.diff import diff_states
from pyzustate.state.events import ChangeStatus, FieldChange, StateDiff
from pyzustate.state.store import StateStore
from pyzustate.store import Handles, Store, create
from pyzustate.sync import SyncCoordinator
from pyzustate.value import ValueSlot

__all__ = [
    "__version__",
    "ById",
    "ByIds",
    "ByMatch",
    "ByPredicate",
    "ChangeStatus",
    "Collection",
    "CountMismatchError",
    "FieldChange",
    "Handles",
    "InvalidItemError",
    "InvalidSelectorError",
    "InvalidStateError",
    "Item",
    "ItemNotFoundError",
    "MatchNothing",
    "Primitive",
    "Reactive",
    "Selector",
    "StateDiff",
    "StateStore",
    "Store",
    "StoreConfig",
    "StrictSetMismatchError",
    "SyncCoordinator",
    "ValueRequiredError",
    "ValueSlot",
    "ZustateConfigError",
    "ZustateError",
    "create",
    "diff_states",
]

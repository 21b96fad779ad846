"""Structural change descriptions handed to sync hooks.

Both sync hooks see state changes only through these models: push hooks get
the diff between the state before and after a change, pull hooks compute a
diff between the current state and a candidate.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChangeStatus(StrEnum):
    ADDED = "added"
    DELETED = "deleted"
    UPDATED = "updated"
    ORDER = "order"


class FieldChange(BaseModel):
    """A single changed path, e.g. ``collections.tasks[abc].title``."""

    model_config = ConfigDict(frozen=True)

    path: str
    status: ChangeStatus
    previous: Any = None
    current: Any = None


class StateDiff(BaseModel):
    """Every path that differs between two state snapshots."""

    model_config = ConfigDict(frozen=True)

    changes: list[FieldChange] = Field(default_factory=list)

    @property
    def is_equal(self) -> bool:
        return not self.changes

    def paths(self) -> list[str]:
        return [change.path for change in self.changes]

    def by_status(self, status: ChangeStatus) -> list[FieldChange]:
        return [change for change in self.changes if change.status == status]

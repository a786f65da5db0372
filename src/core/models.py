"""Core domain models.

These dataclasses are shared across the core and adapters so that the table
store, the repositories and any formatting layer agree on one record shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple, Union


@dataclass(frozen=True)
class TableSchema:
    """Column layout and defaults for one record kind."""

    name: str
    primary_field: str
    secondary_field: str
    default_status: str

    @property
    def columns(self) -> Tuple[str, ...]:
        return (
            "id",
            "user_id",
            "username",
            self.primary_field,
            self.secondary_field,
            "created_at",
            "status",
            "upvotes",
        )


BUGS = TableSchema(name="bugs", primary_field="description", secondary_field="steps", default_status="open")
FEATURES = TableSchema(name="features", primary_field="feature", secondary_field="reason", default_status="pending")


@dataclass(frozen=True)
class Record:
    """One persisted bug report or feature request.

    primary_text/secondary_text hold the kind-specific content columns
    (description/steps or feature/reason) as named by the TableSchema.
    """

    id: int
    user_id: str
    username: str
    primary_text: str
    secondary_text: str
    created_at: datetime
    status: str
    upvotes: int = 0


@dataclass(frozen=True)
class Created:
    """A new record was stored under ``id``."""

    id: int

    @property
    def is_duplicate(self) -> bool:
        return False


@dataclass(frozen=True)
class Duplicate:
    """The submission matched existing records and was not stored."""

    similar_entries: Tuple[Record, ...]

    @property
    def is_duplicate(self) -> bool:
        return True


CreateResult = Union[Created, Duplicate]

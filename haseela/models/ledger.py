"""
Core Ledger Models for Haseela

These models define the strict schemas for the whole persisted state:
clients, their priced tasks, monthly goals and the display currency.

They are designed to:
1. Enforce the record invariants at construction time
2. Be immutable, so every change produces a new value
3. Serialize to one camelCase document shared by every store

DESIGN DECISION: Money is a plain float. Summation drift is accepted for
the data volumes involved (tens to low hundreds of tasks per user).
"""

import random
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# HELPERS
# =============================================================================

def new_id() -> str:
    """Random identifier, unique within one user's dataset."""
    return str(uuid4())


def local_now() -> datetime:
    """Current time as a timezone-aware local datetime."""
    return datetime.now().astimezone()


class ClientColor(str, Enum):
    """
    Visual tags assigned to clients.

    The tag carries no meaning beyond telling clients apart on screen.
    """
    INDIGO = "indigo"
    VIOLET = "violet"
    EMERALD = "emerald"
    AMBER = "amber"
    ROSE = "rose"
    CYAN = "cyan"

    @classmethod
    def from_tag(cls, tag: str) -> Optional["ClientColor"]:
        """
        Palette entry for a stored tag, or None if it is not one of ours.

        Older documents store CSS class names such as "bg-indigo-500".
        """
        name = (tag or "").strip().lower()
        if name.startswith("bg-"):
            name = name[len("bg-"):]
        base, _, shade = name.rpartition("-")
        if base and shade.isdigit():
            name = base
        try:
            return cls(name)
        except ValueError:
            return None


def random_color() -> str:
    return random.choice(list(ClientColor)).value


# Shared by every persisted record: camelCase on the wire, snake_case in Python
_RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    str_strip_whitespace=True,
)


# =============================================================================
# RECORDS
# =============================================================================

class Task(BaseModel):
    """
    A unit of billable work.

    CRITICAL: completed_at is set if and only if is_completed is True.
    """
    model_config = _RECORD_CONFIG

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Opaque task identifier"
    )
    title: str = Field(
        ...,
        min_length=1,
        description="Display title"
    )
    price: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Price in the state's currency"
    )
    is_completed: bool = False
    created_at: datetime = Field(
        default_factory=local_now,
        description="When the task was added (never changes)"
    )
    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the task was last marked complete"
    )

    @model_validator(mode='after')
    def validate_completion(self) -> 'Task':
        """Keep the completion flag and timestamp in step."""
        if self.is_completed and self.completed_at is None:
            raise ValueError("Completed task must have a completion time")
        if not self.is_completed and self.completed_at is not None:
            raise ValueError("Open task cannot have a completion time")
        return self


class Client(BaseModel):
    """
    A counterparty who commissions tasks.

    Tasks are kept in insertion order; the client owns them exclusively.
    """
    model_config = _RECORD_CONFIG

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Opaque client identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )
    tasks: list[Task] = Field(default_factory=list)
    color: str = Field(
        default_factory=random_color,
        description="Palette tag (see ClientColor)"
    )

    @property
    def tasks_newest_first(self) -> list[Task]:
        """Tasks in display order (reverse of storage order)."""
        return list(reversed(self.tasks))

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


class MonthlyGoal(BaseModel):
    """An earnings target for one calendar month."""
    model_config = _RECORD_CONFIG

    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1000, le=9999)
    target_amount: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Target earnings for the period"
    )

    def is_for(self, month: int, year: int) -> bool:
        return self.month == month and self.year == year


class AppState(BaseModel):
    """
    The root aggregate: everything that gets persisted for one user.

    Instances are never modified. Mutations return a new AppState.
    """
    model_config = _RECORD_CONFIG

    clients: list[Client] = Field(default_factory=list)
    goals: list[MonthlyGoal] = Field(default_factory=list)
    currency: str = Field(default="$", min_length=1)

    @model_validator(mode='after')
    def validate_uniqueness(self) -> 'AppState':
        """One client per id, one goal per period."""
        client_ids = [client.id for client in self.clients]
        if len(client_ids) != len(set(client_ids)):
            raise ValueError("Duplicate client id in state")

        periods = [(goal.month, goal.year) for goal in self.goals]
        if len(periods) != len(set(periods)):
            raise ValueError("More than one goal for the same month")

        return self

    @classmethod
    def empty(cls, currency: str = "$") -> 'AppState':
        return cls(clients=[], goals=[], currency=currency)

    @property
    def is_empty(self) -> bool:
        return not self.clients and not self.goals

    def find_client(self, client_id: str) -> Optional[Client]:
        for client in self.clients:
            if client.id == client_id:
                return client
        return None

    def find_goal(self, month: int, year: int) -> Optional[MonthlyGoal]:
        for goal in self.goals:
            if goal.is_for(month, year):
                return goal
        return None

    def to_document(self) -> dict[str, Any]:
        """
        Convert to the JSON-compatible document used by every store.

        The same shape is written to the local cache, the remote store
        and export files.
        """
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> 'AppState':
        """Build a state from a stored document (raises on invalid data)."""
        return cls.model_validate(document)

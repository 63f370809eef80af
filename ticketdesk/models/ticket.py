"""
Ticket Desk Ticket Model

Core principles:
1. Ticket = a request for help raised by a submitter
2. Title, description, priority are fixed at creation
3. Comments are append-only
4. Models are immutable values; every change produces a copy
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class Category(str, Enum):
    HARDWARE = "hardware"
    SOFTWARE = "software"
    NETWORK = "network"
    ACCESS = "access"
    OTHER = "other"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Role(str, Enum):
    SUBMITTER = "submitter"  # Raises tickets, sees only their own
    RESOLVER = "resolver"    # Sees everything, drives status


# =============================================================================
# CORE MODELS
# =============================================================================

class _Record(BaseModel):
    """Persisted records use camelCase field names on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def _as_utc(value: datetime) -> datetime:
    # Timestamps without an offset are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Comment(_Record):
    """A single message in a ticket thread."""
    id: int
    author: str
    text: str
    timestamp: datetime = Field(default_factory=utcnow)

    utc_timestamp = field_validator("timestamp")(_as_utc)


class Ticket(_Record):
    """
    The core ticket entity.

    ticket_id, title, description, category, priority, submitted_by and
    created_at never change after creation. status, assigned_to,
    updated_at and comments change only through the lifecycle engine.
    """
    ticket_id: str = Field(..., description="Human-readable ID, e.g. TKT-482913")

    title: str
    description: str
    category: Category = Category.HARDWARE
    priority: Priority = Priority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN

    submitted_by: str
    assigned_to: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    comments: Tuple[Comment, ...] = ()

    utc_times = field_validator("created_at", "updated_at")(_as_utc)

    @model_validator(mode="after")
    def check_invariants(self) -> "Ticket":
        if not self.title.strip():
            raise ValueError("title must not be blank")
        if not self.description.strip():
            raise ValueError("description must not be blank")
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt is earlier than createdAt")
        return self


# =============================================================================
# SESSION MODELS
# =============================================================================

class User(BaseModel):
    """Session identity. Never persisted."""
    model_config = ConfigDict(frozen=True)

    username: str
    role: Role

    @property
    def is_resolver(self) -> bool:
        return self.role == Role.RESOLVER

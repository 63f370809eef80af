"""
Ticket Desk Engine Services

Core business logic for ticket management.
"""

from .errors import (
    TicketDeskError,
    ValidationError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
)
from .store import TicketStore
from .visibility import visible, can_view, ALL
from .lifecycle import (
    TicketService,
    TicketIdGenerator,
    CommentIdGenerator,
    TRANSITIONS,
    allowed_transitions,
    create_ticket,
    transition_ticket,
    append_comment,
)
from .identity import login

__all__ = [
    # Errors
    "TicketDeskError", "ValidationError", "InvalidTransitionError",
    "NotFoundError", "PermissionDeniedError", "StoreError",

    # Persistence
    "TicketStore",

    # Visibility & filtering
    "visible", "can_view", "ALL",

    # Lifecycle
    "TicketService", "TicketIdGenerator", "CommentIdGenerator",
    "TRANSITIONS", "allowed_transitions",
    "create_ticket", "transition_ticket", "append_comment",

    # Identity stub
    "login",
]

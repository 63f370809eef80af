"""
Ticket Desk Models

Ticket + Comment records, session User.
"""

from .ticket import (
    # Enums
    Category,
    Priority,
    TicketStatus,
    Role,

    # Core models
    Ticket,
    Comment,

    # Session
    User,

    utcnow,
)

__all__ = [
    "Category", "Priority", "TicketStatus", "Role",
    "Ticket", "Comment",
    "User",
    "utcnow",
]

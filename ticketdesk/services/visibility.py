"""
Ticket Desk Visibility & Filter Engine

Computes the list a user is shown:
- Role scope (submitters see only what they raised)
- Free-text search over title, description, ticket id
- Status and priority filters ("all" disables a filter)
- Newest first

Pure: no state is kept between calls, the same inputs always give the
same ordered list.
"""

from enum import Enum
from typing import Iterable, List, Optional, Type, TypeVar, Union

from ..models.ticket import Priority, Role, Ticket, TicketStatus, User
from .errors import ValidationError

ALL = "all"

E = TypeVar("E", bound=Enum)


def can_view(ticket: Ticket, user: User) -> bool:
    """Resolvers see every ticket, submitters only their own."""
    if user.role == Role.RESOLVER:
        return True
    return ticket.submitted_by == user.username


def matches_search(ticket: Ticket, search_term: str) -> bool:
    needle = search_term.lower()
    return (
        needle in ticket.title.lower() or
        needle in ticket.description.lower() or
        needle in ticket.ticket_id.lower()
    )


def _parse_filter(value: Union[str, E, None], enum_cls: Type[E]) -> Optional[E]:
    """Return the enum member to filter on, or None for "all"."""
    if value is None or value == ALL:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join([ALL] + [m.value for m in enum_cls])
        raise ValidationError(
            f"Unknown {enum_cls.__name__} filter '{value}'. Expected one of: {allowed}"
        ) from None


def visible(
    tickets: Iterable[Ticket],
    current_user: User,
    search_term: str = "",
    status_filter: Union[str, TicketStatus] = ALL,
    priority_filter: Union[str, Priority] = ALL,
) -> List[Ticket]:
    """
    Get the tickets a user should see, newest first.

    Args:
        tickets: The full collection
        current_user: Who's looking
        search_term: Case-insensitive substring; empty means no search
        status_filter: A TicketStatus (or its value) or "all"
        priority_filter: A Priority (or its value) or "all"
    """
    status = _parse_filter(status_filter, TicketStatus)
    priority = _parse_filter(priority_filter, Priority)

    filtered = [t for t in tickets if can_view(t, current_user)]

    if search_term:
        filtered = [t for t in filtered if matches_search(t, search_term)]

    if status is not None:
        filtered = [t for t in filtered if t.status == status]

    if priority is not None:
        filtered = [t for t in filtered if t.priority == priority]

    # sorted() is stable, so equal timestamps keep collection order
    return sorted(filtered, key=lambda t: t.created_at, reverse=True)

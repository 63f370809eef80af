"""
Ticket Desk errors.

Everything the engine raises on purpose derives from TicketDeskError so
collaborators can surface it to the user in one place.
"""


class TicketDeskError(Exception):
    """Base class for engine errors."""
    pass


class ValidationError(TicketDeskError, ValueError):
    """Raised when a required field is empty or a value is not recognised."""
    pass


class InvalidTransitionError(TicketDeskError):
    """Raised when a status change is not an edge of the lifecycle."""

    def __init__(self, ticket_id: str, current, target):
        self.ticket_id = ticket_id
        self.current = current
        self.target = target
        super().__init__(
            f"Ticket {ticket_id} cannot move from "
            f"'{getattr(current, 'value', current)}' to "
            f"'{getattr(target, 'value', target)}'."
        )


class NotFoundError(TicketDeskError):
    """Raised when an operation targets a ticket id that does not exist."""

    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket {ticket_id} not found.")


class PermissionDeniedError(TicketDeskError):
    """Raised when the acting role may not perform the operation."""
    pass


class StoreError(TicketDeskError):
    """Raised when the durable ticket record cannot be written."""
    pass

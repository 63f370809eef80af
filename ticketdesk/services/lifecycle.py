"""
Ticket Desk Lifecycle Engine

Status state machine:

    create (submitter)
         |
       [open] --start--> [in-progress] --resolve--> [resolved] --close--> [closed]
         ^________________reopen___________________________|

Every operation builds a NEW collection in which exactly one ticket is
replaced by its updated copy. TicketService only adopts that collection
once the store has confirmed the write.
"""

from datetime import datetime
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from ..config import Settings, get_settings
from ..models.ticket import (
    Category,
    Comment,
    Priority,
    Role,
    Ticket,
    TicketStatus,
    User,
    utcnow,
)
from ..utils.logger import setup_logger
from .errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    TicketDeskError,
    ValidationError,
)
from .store import TicketStore
from .visibility import ALL, can_view, visible

logger = setup_logger(__name__)

Clock = Callable[[], datetime]

TRANSITIONS: Dict[TicketStatus, FrozenSet[TicketStatus]] = {
    TicketStatus.OPEN: frozenset({TicketStatus.IN_PROGRESS}),
    TicketStatus.IN_PROGRESS: frozenset({TicketStatus.RESOLVED, TicketStatus.OPEN}),
    TicketStatus.RESOLVED: frozenset({TicketStatus.CLOSED, TicketStatus.OPEN}),
    TicketStatus.CLOSED: frozenset(),
}

_SUFFIX_SPACE = 1_000_000


def _epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class TicketIdGenerator:
    """
    Mints display ids: prefix + the last six digits of the clock in ms.

    Collisions with ids already in the collection bump the suffix until a
    free one is found.
    """

    def __init__(self, prefix: str = "TKT-", clock: Clock = utcnow):
        self.prefix = prefix
        self._clock = clock

    def __call__(self, existing: Set[str]) -> str:
        suffix = _epoch_millis(self._clock()) % _SUFFIX_SPACE
        for _ in range(_SUFFIX_SPACE):
            candidate = f"{self.prefix}{suffix:06d}"
            if candidate not in existing:
                return candidate
            suffix = (suffix + 1) % _SUFFIX_SPACE
        raise TicketDeskError(f"No free ticket ids left for prefix '{self.prefix}'.")


class CommentIdGenerator:
    """Clock-based comment ids, strictly increasing within a session."""

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock
        self._last = 0

    def observe(self, ids: Iterable[int]) -> None:
        """Never hand out an id at or below one already in use."""
        for comment_id in ids:
            self._last = max(self._last, comment_id)

    def __call__(self) -> int:
        self._last = max(_epoch_millis(self._clock()), self._last + 1)
        return self._last


# =============================================================================
# PURE TRANSFORMS
# =============================================================================

def allowed_transitions(status: Union[str, TicketStatus]) -> FrozenSet[TicketStatus]:
    """Targets reachable from a status in one step."""
    return TRANSITIONS[TicketStatus(status)]


def _require_text(value: Optional[str], field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required.")
    return value


def _coerce(value, enum_cls, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unknown {field} '{value}'.") from None


def _find(tickets: List[Ticket], ticket_id: str) -> int:
    for index, ticket in enumerate(tickets):
        if ticket.ticket_id == ticket_id:
            return index
    raise NotFoundError(ticket_id)


def _touch(ticket: Ticket, now: datetime) -> datetime:
    # updated_at never goes backwards, even if the clock does
    return max(now, ticket.updated_at, ticket.created_at)


def _replace(tickets: List[Ticket], index: int, updated: Ticket) -> List[Ticket]:
    return tickets[:index] + [updated] + tickets[index + 1:]


def create_ticket(
    tickets: Iterable[Ticket],
    *,
    ticket_id: str,
    title: str,
    description: str,
    submitted_by: str,
    now: datetime,
    category: Union[str, Category] = Category.HARDWARE,
    priority: Union[str, Priority] = Priority.MEDIUM,
) -> Tuple[List[Ticket], Ticket]:
    """
    Build a new open ticket and prepend it to the collection.

    Raises:
        ValidationError: blank title/description or unknown category/priority
    """
    current = list(tickets)
    _require_text(title, "Title")
    _require_text(description, "Description")

    if any(t.ticket_id == ticket_id for t in current):
        raise ValidationError(f"Ticket id {ticket_id} is already in use.")

    ticket = Ticket(
        ticket_id=ticket_id,
        title=title,
        description=description,
        category=_coerce(category, Category, "category"),
        priority=_coerce(priority, Priority, "priority"),
        status=TicketStatus.OPEN,
        submitted_by=submitted_by,
        assigned_to=None,
        created_at=now,
        updated_at=now,
        comments=(),
    )
    return [ticket] + current, ticket


def transition_ticket(
    tickets: Iterable[Ticket],
    ticket_id: str,
    target: Union[str, TicketStatus],
    actor: str,
    now: datetime,
) -> Tuple[List[Ticket], Ticket]:
    """
    Move a ticket along one lifecycle edge.

    The open -> in-progress edge assigns the ticket to the actor if nobody
    has it yet. No other edge touches assigned_to.

    Raises:
        NotFoundError: no ticket with that id
        InvalidTransitionError: target is not reachable from current status
    """
    current = list(tickets)
    index = _find(current, ticket_id)
    ticket = current[index]

    try:
        target_status = TicketStatus(target)
    except ValueError:
        raise InvalidTransitionError(ticket_id, ticket.status, target) from None

    if target_status not in TRANSITIONS[ticket.status]:
        raise InvalidTransitionError(ticket_id, ticket.status, target_status)

    assigned_to = ticket.assigned_to
    if (
        ticket.status == TicketStatus.OPEN
        and target_status == TicketStatus.IN_PROGRESS
        and not assigned_to
    ):
        assigned_to = actor

    updated = ticket.model_copy(update={
        "status": target_status,
        "assigned_to": assigned_to,
        "updated_at": _touch(ticket, now),
    })
    return _replace(current, index, updated), updated


def append_comment(
    tickets: Iterable[Ticket],
    ticket_id: str,
    author: str,
    text: str,
    comment_id: int,
    now: datetime,
) -> Tuple[List[Ticket], Ticket]:
    """
    Add a comment to the end of a ticket's thread.

    Raises:
        ValidationError: blank text
        NotFoundError: no ticket with that id
    """
    current = list(tickets)
    _require_text(text, "Comment text")
    index = _find(current, ticket_id)
    ticket = current[index]

    comment = Comment(id=comment_id, author=author, text=text, timestamp=now)
    updated = ticket.model_copy(update={
        "comments": ticket.comments + (comment,),
        "updated_at": _touch(ticket, now),
    })
    return _replace(current, index, updated), updated


# =============================================================================
# SERVICE
# =============================================================================

class TicketService:
    """
    Owns the in-memory ticket collection for one session.

    Rules:
    1. Only submitters create tickets
    2. Only resolvers change status
    3. Anyone comments, but only on tickets they can see
    4. Nothing is adopted in memory until the store has saved it
    """

    def __init__(
        self,
        store: Optional[TicketStore] = None,
        settings: Optional[Settings] = None,
        clock: Clock = utcnow,
        ticket_ids: Optional[Callable[[Set[str]], str]] = None,
        comment_ids: Optional[CommentIdGenerator] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store or TicketStore(settings=self.settings)
        self._clock = clock
        self._ticket_ids = ticket_ids or TicketIdGenerator(
            prefix=self.settings.ticket_id_prefix, clock=clock
        )
        self._comment_ids = comment_ids or CommentIdGenerator(clock=clock)
        self._tickets: Tuple[Ticket, ...] = ()

    @property
    def tickets(self) -> List[Ticket]:
        """The last successfully saved collection."""
        return list(self._tickets)

    def load(self) -> List[Ticket]:
        """Replace the in-memory collection with whatever the store holds."""
        self._tickets = tuple(self.store.load())
        self._comment_ids.observe(
            c.id for t in self._tickets for c in t.comments
        )
        logger.info(f"Loaded {len(self._tickets)} tickets")
        return self.tickets

    def visible(
        self,
        user: User,
        search_term: str = "",
        status_filter: Union[str, TicketStatus] = ALL,
        priority_filter: Union[str, Priority] = ALL,
    ) -> List[Ticket]:
        return visible(self._tickets, user, search_term, status_filter, priority_filter)

    def get(self, user: User, ticket_id: str) -> Ticket:
        """Re-read a ticket by id. Tickets the user can't see don't exist for them."""
        for ticket in self._tickets:
            if ticket.ticket_id == ticket_id and can_view(ticket, user):
                return ticket
        raise NotFoundError(ticket_id)

    def create(
        self,
        user: User,
        title: str,
        description: str,
        category: Union[str, Category] = Category.HARDWARE,
        priority: Union[str, Priority] = Priority.MEDIUM,
    ) -> Ticket:
        self._require_role(user, Role.SUBMITTER, "create tickets")

        existing = {t.ticket_id for t in self._tickets}
        updated, ticket = create_ticket(
            self._tickets,
            ticket_id=self._ticket_ids(existing),
            title=title,
            description=description,
            submitted_by=user.username,
            now=self._clock(),
            category=category,
            priority=priority,
        )
        self._commit(updated, f"created {ticket.ticket_id}")
        return ticket

    def transition(
        self,
        user: User,
        ticket_id: str,
        target: Union[str, TicketStatus],
    ) -> Ticket:
        self._require_role(user, Role.RESOLVER, "change ticket status")

        try:
            updated, ticket = transition_ticket(
                self._tickets, ticket_id, target, user.username, self._clock()
            )
        except InvalidTransitionError as e:
            logger.debug(f"Rejected transition: {e}")
            raise

        self._commit(updated, f"moved {ticket_id} to {ticket.status.value}")
        return ticket

    def add_comment(self, user: User, ticket_id: str, text: str) -> Ticket:
        # Comments are scoped to visible tickets
        self.get(user, ticket_id)
        _require_text(text, "Comment text")

        updated, ticket = append_comment(
            self._tickets,
            ticket_id,
            user.username,
            text,
            self._comment_ids(),
            self._clock(),
        )
        self._commit(updated, f"commented on {ticket_id}")
        return ticket

    def _require_role(self, user: User, role: Role, action: str) -> None:
        if user.role != role:
            logger.warning(f"{user.username} ({user.role.value}) tried to {action}")
            raise PermissionDeniedError(
                f"Only {role.value}s can {action}."
            )

    def _commit(self, updated: List[Ticket], what: str) -> None:
        try:
            self.store.save(updated)
        except StoreError:
            logger.error(f"Save failed, keeping last saved state ({what} not applied)")
            raise

        self._tickets = tuple(updated)
        logger.info(f"Committed: {what}")

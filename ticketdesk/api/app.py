"""
Ticket Desk API

Thin FastAPI layer standing in for the rendering layer:
- Demo session login (identity stub, not authentication)
- Ticket list with search and filters
- Ticket creation, status transitions, comments

All behaviour lives in the engine; this module only maps HTTP to
TicketService calls and engine errors to status codes.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..config import get_settings
from ..models import Category, Priority, Role, Ticket, User
from ..services import (
    ALL,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    TicketDeskError,
    TicketService,
    ValidationError,
    allowed_transitions,
    login,
)
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

# =============================================================================
# APP SETUP
# =============================================================================

app = FastAPI(
    title="Ticket Desk Engine",
    description="Submitter/resolver ticket tracking with a fixed lifecycle",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache()
def get_service() -> TicketService:
    service = TicketService(settings=get_settings())
    service.load()
    return service


def get_current_user(
    x_username: Optional[str] = Header(None),
    x_role: Optional[str] = Header(None),
) -> User:
    if not x_username or not x_role:
        raise HTTPException(status_code=401, detail="No session")
    try:
        return User(username=x_username, role=Role(x_role))
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role '{x_role}'")


# =============================================================================
# ERROR MAPPING
# =============================================================================

_ERROR_STATUS = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


@app.exception_handler(TicketDeskError)
async def ticketdesk_error_handler(request: Request, exc: TicketDeskError):
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_cls, error_code in _ERROR_STATUS:
        if isinstance(exc, error_cls):
            code = error_code
            break
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class LoginRequest(BaseModel):
    role: Role


class CreateTicketRequest(BaseModel):
    title: str
    description: str
    category: Category = Category.HARDWARE
    priority: Priority = Priority.MEDIUM


class TransitionRequest(BaseModel):
    status: str  # Checked by the engine, unknown values are a 409


class AddCommentRequest(BaseModel):
    text: str


def _ticket_out(ticket: Ticket, user: User) -> dict:
    body = ticket.to_record()
    if user.is_resolver:
        body["allowedTransitions"] = sorted(
            s.value for s in allowed_transitions(ticket.status)
        )
    return body


# =============================================================================
# HEALTH CHECK
# =============================================================================

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "ticketdesk",
        "version": __version__
    }


# =============================================================================
# SESSION
# =============================================================================

@app.post("/session", status_code=status.HTTP_201_CREATED)
async def create_session(request: LoginRequest):
    """
    Demo login: mint a throwaway username for the chosen role.

    Clients send it back as X-Username / X-Role headers.
    """
    user = login(request.role)
    return {"username": user.username, "role": user.role.value}


# =============================================================================
# TICKET ENDPOINTS
# =============================================================================

@app.get("/tickets")
def list_tickets(
    search: str = "",
    status: str = ALL,
    priority: str = ALL,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_service),
):
    """
    Tickets visible to the caller, newest first.
    """
    tickets = service.visible(user, search, status, priority)
    return {
        "tickets": [_ticket_out(t, user) for t in tickets],
        "total": len(tickets)
    }


@app.post("/tickets", status_code=status.HTTP_201_CREATED)
def create_ticket(
    request: CreateTicketRequest,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_service),
):
    """
    Raise a new ticket. Submitters only.
    """
    ticket = service.create(
        user,
        title=request.title,
        description=request.description,
        category=request.category,
        priority=request.priority,
    )
    return _ticket_out(ticket, user)


@app.get("/tickets/{ticket_id}")
def get_ticket(
    ticket_id: str,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_service),
):
    return _ticket_out(service.get(user, ticket_id), user)


@app.post("/tickets/{ticket_id}/transitions")
def transition_ticket(
    ticket_id: str,
    request: TransitionRequest,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_service),
):
    """
    Move a ticket along the lifecycle. Resolvers only.
    """
    ticket = service.transition(user, ticket_id, request.status)
    return _ticket_out(ticket, user)


@app.post("/tickets/{ticket_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    ticket_id: str,
    request: AddCommentRequest,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_service),
):
    ticket = service.add_comment(user, ticket_id, request.text)
    return _ticket_out(ticket, user)


# =============================================================================
# RUN
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)

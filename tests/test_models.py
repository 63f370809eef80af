"""Tests for the ticket record shape"""
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as SchemaError

from ticketdesk.models import Category, Comment, Priority, Role, Ticket, TicketStatus, User


def _ticket(**overrides):
    fields = dict(
        ticket_id="TKT-000001",
        title="Printer jammed",
        description="Third floor printer eats paper",
        submitted_by="submitter_alice",
        created_at=datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
        updated_at=datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return Ticket(**fields)


class TestTicketRecord:
    def test_defaults(self):
        ticket = _ticket()

        assert ticket.status == TicketStatus.OPEN
        assert ticket.category == Category.HARDWARE
        assert ticket.priority == Priority.MEDIUM
        assert ticket.assigned_to is None
        assert ticket.comments == ()

    def test_record_uses_wire_field_names(self):
        record = _ticket().to_record()

        assert list(record) == [
            "ticketId", "title", "description", "category", "priority",
            "status", "submittedBy", "assignedTo", "createdAt", "updatedAt",
            "comments",
        ]

    def test_record_values_are_plain(self):
        ticket = _ticket(
            status=TicketStatus.IN_PROGRESS,
            comments=[Comment(
                id=1709287200000,
                author="resolver_rita",
                text="On it",
                timestamp=datetime(2024, 3, 1, 10, 5, tzinfo=timezone.utc),
            )],
        )
        record = ticket.to_record()

        assert record["status"] == "in-progress"
        assert record["createdAt"].startswith("2024-03-01T10:00:00")
        assert record["comments"] == [{
            "id": 1709287200000,
            "author": "resolver_rita",
            "text": "On it",
            "timestamp": record["comments"][0]["timestamp"],
        }]
        assert record["comments"][0]["timestamp"].startswith("2024-03-01T10:05:00")

    def test_parses_wire_names(self):
        ticket = Ticket.model_validate({
            "ticketId": "TKT-123456",
            "title": "VPN down",
            "description": "Cannot connect",
            "category": "network",
            "priority": "high",
            "status": "resolved",
            "submittedBy": "submitter_bob",
            "assignedTo": "resolver_rita",
            "createdAt": "2024-03-01T10:00:00+00:00",
            "updatedAt": "2024-03-01T11:00:00+00:00",
            "comments": [],
        })

        assert ticket.ticket_id == "TKT-123456"
        assert ticket.category == Category.NETWORK
        assert ticket.status == TicketStatus.RESOLVED
        assert ticket.assigned_to == "resolver_rita"

    def test_unknown_status_rejected(self):
        with pytest.raises(SchemaError):
            _ticket(status="pending")

    def test_ticket_is_immutable(self):
        ticket = _ticket()
        with pytest.raises(SchemaError):
            ticket.title = "Changed"

    def test_comment_thread_cannot_change_in_place(self):
        ticket = _ticket(comments=[Comment(id=1, author="a", text="first")])

        assert isinstance(ticket.comments, tuple)
        with pytest.raises(AttributeError):
            ticket.comments.clear()
        with pytest.raises(AttributeError):
            ticket.comments.append(Comment(id=2, author="a", text="second"))
        assert len(ticket.comments) == 1

    def test_timestamps_without_offset_are_utc(self):
        ticket = Ticket.model_validate({
            "ticketId": "TKT-000009",
            "title": "Old record",
            "description": "Written without offsets",
            "submittedBy": "submitter_alice",
            "createdAt": "2024-01-01T09:00:00",
            "updatedAt": "2024-01-01T09:30:00",
            "comments": [{"id": 1, "author": "a", "text": "hi",
                          "timestamp": "2024-01-01T09:15:00"}],
        })

        assert ticket.created_at == datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        assert ticket.updated_at.tzinfo is not None
        assert ticket.comments[0].timestamp.tzinfo is not None

    @pytest.mark.parametrize("overrides", [
        {"title": "  "},
        {"description": ""},
        {"updated_at": datetime(2024, 3, 1, 9, 59, tzinfo=timezone.utc)},
    ])
    def test_invariants_checked(self, overrides):
        with pytest.raises(SchemaError):
            _ticket(**overrides)


class TestUser:
    def test_role_flags(self):
        assert User(username="r", role=Role.RESOLVER).is_resolver
        assert not User(username="s", role="submitter").is_resolver

"""
pytest configuration and shared fixtures
"""
from datetime import datetime, timedelta, timezone

import pytest

from ticketdesk.config import Settings
from ticketdesk.models import Role, User
from ticketdesk.services import StoreError, TicketService, TicketStore


class FakeClock:
    """Controllable clock; starts at a fixed instant and only moves when told."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FlakyStore(TicketStore):
    """File store whose save() can be switched to fail."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail = False
        self.saves = 0

    def save(self, tickets):
        if self.fail:
            raise StoreError("Simulated quota exceeded")
        super().save(tickets)
        self.saves += 1


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data", store_key="tickets")


@pytest.fixture
def store(settings):
    return FlakyStore(settings=settings)


@pytest.fixture
def service(store, settings, clock):
    svc = TicketService(store=store, settings=settings, clock=clock)
    svc.load()
    return svc


@pytest.fixture
def alice():
    return User(username="submitter_alice", role=Role.SUBMITTER)


@pytest.fixture
def bob():
    return User(username="submitter_bob", role=Role.SUBMITTER)


@pytest.fixture
def resolver():
    return User(username="resolver_rita", role=Role.RESOLVER)

"""
Pytest fixtures for the event analytics test suite.

Provides:
- In-memory SQLite sessions with all tables created (one database per test)
- A deterministic clock fixed on Wednesday 2025-03-12 (week starts 2025-03-09)
- The default analytics configuration
- Seeding helpers for events, items, attendance and feedback
- Structured log capture
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from event_config import get_active_config
from event_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from event_kernel.domain.clock import DeterministicClock
from event_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from event_kernel.models import (
    AttendanceStat,
    Event,
    EventCollaborator,
    FeedbackResponse,
    LineItem,
)


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Route event_kernel logs to a throwaway stream for the whole run."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture event_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "quota_reserved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("event_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


@pytest.fixture
def db_engine():
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def config():
    return get_active_config()


@pytest.fixture
def user_id() -> str:
    return str(uuid4())


@pytest.fixture
def make_event(session):
    """Insert an Event row (flushed, not committed) and return it."""

    def _make(
        owner_id,
        title: str = "Event",
        date: datetime | None = datetime(2025, 3, 1, 18, 0),
        category: str | None = "Wedding",
        markup_type: str = "percentage",
        markup_value: Decimal = Decimal("0"),
        discount_type: str = "none",
        discount_value: Decimal = Decimal("0"),
        items: list[tuple[str, Decimal, int | None]] | None = None,
        attendance: tuple[int, int] | None = None,
        ratings: list[Decimal | None] | None = None,
    ) -> Event:
        event = Event(
            title=title,
            date=date,
            category=category,
            owner_id=owner_id,
            markup_type=markup_type,
            markup_value=markup_value,
            discount_type=discount_type,
            discount_value=discount_value,
        )
        session.add(event)
        session.flush()
        for name, cost, quantity in items or []:
            session.add(LineItem(event_id=event.id, name=name, cost=cost, quantity=quantity))
        if attendance is not None:
            session.add(AttendanceStat(
                event_id=event.id,
                expected_attendees=attendance[0],
                event_attendees=attendance[1],
            ))
        for rating in ratings or []:
            session.add(FeedbackResponse(event_id=event.id, rating=rating, sentiment="positive"))
        session.flush()
        return event

    return _make


@pytest.fixture
def join_event(session):
    """Register ``user_id`` as a collaborator on ``event``."""

    def _join(event: Event, user_id) -> EventCollaborator:
        row = EventCollaborator(event_id=event.id, user_id=user_id)
        session.add(row)
        session.flush()
        return row

    return _join

"""
Module: event_kernel.selectors.event_selector
Responsibility: Read events, line items, attendance and feedback for a
    user's scope and convert them into immutable snapshots for the engines.
Architecture position: Kernel > Selectors.  Storage read collaborator of
    the analytics orchestrator.

Invariants enforced:
    - Items, attendance and feedback are only ever read for an explicit
      event-id set, so a snapshot never mixes in rows of invisible events.
    - Joined events come from event_collaborators; when that lookup returns
      nothing the optional ``fallback_lookup`` is consulted.

Failure modes:
    - SQLAlchemyError propagates to the caller, which reports it as an
      UpstreamFetchError.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import select

from event_kernel.domain.dtos import (
    AttendanceSnapshot,
    EventSnapshot,
    FeedbackSnapshot,
    LineItemSnapshot,
    PortfolioSnapshot,
)
from event_kernel.domain.values import (
    DiscountType,
    MarkupType,
    Scope,
    as_datetime,
    to_decimal,
)
from event_kernel.logging_config import get_logger
from event_kernel.models.attendance import AttendanceStat
from event_kernel.models.event import Event, EventCollaborator
from event_kernel.models.feedback import FeedbackResponse
from event_kernel.models.line_item import LineItem
from event_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.event")

FallbackLookup = Callable[[str], Iterable[Any]]


@dataclass(frozen=True)
class ScopedEvents:
    """Owned and joined events for one user, before de-duplication."""

    owned: tuple[EventSnapshot, ...] = ()
    joined: tuple[EventSnapshot, ...] = ()


def _event_snapshot(row: Event) -> EventSnapshot:
    return EventSnapshot(
        id=str(row.id),
        title=row.title,
        owner_id=str(row.owner_id),
        date=as_datetime(row.date),
        category=row.category,
        markup_type=MarkupType(row.markup_type),
        markup_value=to_decimal(row.markup_value),
        discount_type=DiscountType(row.discount_type),
        discount_value=to_decimal(row.discount_value),
    )


class EventSelector(BaseSelector):
    """
    Read side for event analytics.

    Guarantees:
        - Every method returns snapshots ordered deterministically (events by
          date then title, child rows by creation order).
    """

    def __init__(self, session, fallback_lookup: FallbackLookup | None = None):
        super().__init__(session)
        self._fallback_lookup = fallback_lookup

    def owned_events(self, user_id: Any) -> list[EventSnapshot]:
        rows = self.session.scalars(
            select(Event)
            .where(Event.owner_id == str(user_id))
            .order_by(Event.date, Event.title)
        ).all()
        return [_event_snapshot(r) for r in rows]

    def joined_event_ids(self, user_id: Any) -> list[str]:
        """Event ids the user collaborates on, via the fallback if needed."""
        ids = [
            str(event_id)
            for event_id in self.session.scalars(
                select(EventCollaborator.event_id)
                .where(EventCollaborator.user_id == str(user_id))
                .order_by(EventCollaborator.created_at)
            ).all()
        ]
        if not ids and self._fallback_lookup is not None:
            ids = [str(event_id) for event_id in self._fallback_lookup(str(user_id))]
            logger.debug(
                "joined_events_fallback_used",
                extra={"user_id": str(user_id), "event_count": len(ids)},
            )
        return ids

    def events_by_ids(self, event_ids: Iterable[str]) -> list[EventSnapshot]:
        ids = list(dict.fromkeys(str(i) for i in event_ids))
        if not ids:
            return []
        rows = self.session.scalars(
            select(Event).where(Event.id.in_(ids)).order_by(Event.date, Event.title)
        ).all()
        return [_event_snapshot(r) for r in rows]

    def events_for_scope(self, user_id: Any, scope: Scope | str) -> ScopedEvents:
        """Load the owned and/or joined events the scope asks for."""
        scope = Scope(scope)
        owned: list[EventSnapshot] = []
        joined: list[EventSnapshot] = []
        if scope in (Scope.OWNED, Scope.BOTH):
            owned = self.owned_events(user_id)
        if scope in (Scope.JOINED, Scope.BOTH):
            joined = self.events_by_ids(self.joined_event_ids(user_id))
        logger.debug(
            "scope_events_loaded",
            extra={
                "scope": scope.value,
                "owned_count": len(owned),
                "joined_count": len(joined),
            },
        )
        return ScopedEvents(owned=tuple(owned), joined=tuple(joined))

    def items_for(self, event_ids: Iterable[str]) -> list[LineItemSnapshot]:
        ids = list(event_ids)
        if not ids:
            return []
        rows = self.session.scalars(
            select(LineItem)
            .where(LineItem.event_id.in_(ids))
            .order_by(LineItem.created_at, LineItem.id)
        ).all()
        return [
            LineItemSnapshot(
                event_id=str(r.event_id),
                cost=to_decimal(r.cost),
                quantity=r.quantity,
                name=r.name,
            )
            for r in rows
        ]

    def attendance_for(self, event_ids: Iterable[str]) -> list[AttendanceSnapshot]:
        ids = list(event_ids)
        if not ids:
            return []
        rows = self.session.scalars(
            select(AttendanceStat).where(AttendanceStat.event_id.in_(ids))
        ).all()
        return [
            AttendanceSnapshot(
                event_id=str(r.event_id),
                expected_attendees=r.expected_attendees,
                event_attendees=r.event_attendees,
            )
            for r in rows
        ]

    def feedback_for(self, event_ids: Iterable[str]) -> list[FeedbackSnapshot]:
        ids = list(event_ids)
        if not ids:
            return []
        rows = self.session.scalars(
            select(FeedbackResponse)
            .where(FeedbackResponse.event_id.in_(ids))
            .order_by(FeedbackResponse.created_at, FeedbackResponse.id)
        ).all()
        return [
            FeedbackSnapshot(
                event_id=str(r.event_id), rating=r.rating, sentiment=r.sentiment
            )
            for r in rows
        ]

    def load_snapshot(
        self,
        events: Iterable[EventSnapshot],
        fetched_at: datetime | None = None,
    ) -> PortfolioSnapshot:
        """Read every child collection for ``events`` into one snapshot."""
        events = tuple(events)
        ids = [e.id for e in events]
        return PortfolioSnapshot(
            events=events,
            items=tuple(self.items_for(ids)),
            attendance=tuple(self.attendance_for(ids)),
            feedback=tuple(self.feedback_for(ids)),
            fetched_at=fetched_at,
        )

"""
Module: event_kernel.models.feedback
Responsibility: ORM persistence for feedback responses.

Rating and sentiment are both optional.  Responses without a rating still
count toward the event's total responses and response rate.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from event_kernel.db.base import TrackedBase, UUIDString


class FeedbackResponse(TrackedBase):
    """One attendee's feedback for an event."""

    __tablename__ = "feedback_responses"

    __table_args__ = (Index("idx_feedback_event", "event_id"),)

    event_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )

    rating: Mapped[Decimal | None] = mapped_column(Numeric(3, 1), nullable=True)

    sentiment: Mapped[str | None] = mapped_column(String(20), nullable=True)

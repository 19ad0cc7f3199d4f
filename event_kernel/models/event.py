"""
Module: event_kernel.models.event
Responsibility: ORM persistence for events, their pricing rule, and the
    collaborator memberships that make an event visible in the ``joined``
    scope.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - markup_value and discount_value are non-negative (CHECK constraints).
    - discount_value is ignored by the pricing engine when
      discount_type = "none"; it is stored as entered.
    - A user appears at most once per event in event_collaborators.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from event_kernel.db.base import TrackedBase, UUIDString
from event_kernel.domain.values import DiscountType, MarkupType


class Event(TrackedBase):
    """An event owned by one user, priced by its markup/discount rule."""

    __tablename__ = "events"

    __table_args__ = (
        CheckConstraint("markup_value >= 0", name="ck_event_markup_non_negative"),
        CheckConstraint("discount_value >= 0", name="ck_event_discount_non_negative"),
        Index("idx_event_owner", "owner_id"),
        Index("idx_event_date", "date"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    date: Mapped[datetime | None] = mapped_column(nullable=True)

    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    markup_type: Mapped[str] = mapped_column(
        String(20),
        default=MarkupType.PERCENTAGE.value,
        nullable=False,
    )

    markup_value: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    discount_type: Mapped[str] = mapped_column(
        String(20),
        default=DiscountType.NONE.value,
        nullable=False,
    )

    discount_value: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    collaborators: Mapped[list["EventCollaborator"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Event {self.title!r} ({self.id})>"


class EventCollaborator(TrackedBase):
    """Membership row: ``user_id`` has joined ``event_id``."""

    __tablename__ = "event_collaborators"

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_collaborator"),
        Index("idx_collaborator_user", "user_id"),
    )

    event_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )

    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    event: Mapped[Event] = relationship(back_populates="collaborators")

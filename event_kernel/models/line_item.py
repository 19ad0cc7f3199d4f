"""
Module: event_kernel.models.line_item
Responsibility: ORM persistence for per-event cost lines.

Invariants enforced:
    - cost >= 0 (2-decimal currency semantics via Numeric(14, 2)).
    - quantity is NULL or >= 1; NULL is read as 1 by the engines.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from event_kernel.db.base import TrackedBase, UUIDString


class LineItem(TrackedBase):
    """One cost line of an event; contributes ``cost x quantity``."""

    __tablename__ = "event_items"

    __table_args__ = (
        CheckConstraint("cost >= 0", name="ck_item_cost_non_negative"),
        CheckConstraint(
            "quantity IS NULL OR quantity >= 1", name="ck_item_quantity_positive"
        ),
        Index("idx_item_event", "event_id"),
    )

    event_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    cost: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    quantity: Mapped[int | None] = mapped_column(nullable=True)

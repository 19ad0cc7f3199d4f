"""
Module: event_kernel.models.insight
Responsibility: ORM persistence for the weekly insight quota counters and
    the latest generated insight text per scope.

Invariants enforced:
    - One usage row per (scope_type, scope_id, week_start)
      (uq_insight_usage_scope_week).
    - insights_generated never exceeds max_insights when written through
      QuotaService.reserve (compare-and-increment UPDATE).
    - One insight row per scope_key (uq_insight_scope_key); writes overwrite.

Scope keys:
    user scope  -> "user:<user_id>:<week_start ISO>"
    event scope -> "event:<event_id>"
"""

from datetime import date, datetime

from sqlalchemy import Boolean, CheckConstraint, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from event_kernel.db.base import TrackedBase


class InsightUsage(TrackedBase):
    """Weekly insight counter for one scope (the QuotaRecord)."""

    __tablename__ = "analytics_insights_usage"

    __table_args__ = (
        UniqueConstraint(
            "scope_type", "scope_id", "week_start", name="uq_insight_usage_scope_week"
        ),
        CheckConstraint("insights_generated >= 0", name="ck_usage_non_negative"),
    )

    scope_type: Mapped[str] = mapped_column(String(10), nullable=False)

    scope_id: Mapped[str] = mapped_column(String(64), nullable=False)

    week_start: Mapped[date] = mapped_column(nullable=False)

    insights_generated: Mapped[int] = mapped_column(default=0, nullable=False)

    # Tier ceiling observed at the last check
    max_insights: Mapped[int] = mapped_column(default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<InsightUsage {self.scope_type}:{self.scope_id} "
            f"{self.week_start} {self.insights_generated}/{self.max_insights}>"
        )


class InsightRecord(TrackedBase):
    """Latest insight text for one scope key."""

    __tablename__ = "analytics_insights"

    __table_args__ = (UniqueConstraint("scope_key", name="uq_insight_scope_key"),)

    scope_key: Mapped[str] = mapped_column(String(120), nullable=False)

    scope_type: Mapped[str] = mapped_column(String(10), nullable=False)

    scope_id: Mapped[str] = mapped_column(String(64), nullable=False)

    week_start: Mapped[date | None] = mapped_column(nullable=True)

    insights: Mapped[str] = mapped_column(Text, nullable=False)

    generated_at: Mapped[datetime] = mapped_column(nullable=False)

    is_fallback: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

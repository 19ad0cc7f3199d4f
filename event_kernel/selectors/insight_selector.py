"""
Module: event_kernel.selectors.insight_selector
Responsibility: Read the saved insight for a scope and week.
Architecture position: Kernel > Selectors.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import select

from event_kernel.domain.dtos import InsightScope
from event_kernel.models.insight import InsightRecord
from event_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class SavedInsight:
    scope_key: str
    text: str
    generated_at: datetime
    is_fallback: bool = False
    is_edited: bool = False


class InsightSelector(BaseSelector):
    """Loads persisted insight text."""

    def get(self, scope: InsightScope, week: date) -> SavedInsight | None:
        key = scope.record_key(week)
        row = self.session.execute(
            select(InsightRecord).where(InsightRecord.scope_key == key)
        ).scalar_one_or_none()
        if row is None:
            return None
        return SavedInsight(
            scope_key=row.scope_key,
            text=row.insights,
            generated_at=row.generated_at,
            is_fallback=row.is_fallback,
            is_edited=row.is_edited,
        )

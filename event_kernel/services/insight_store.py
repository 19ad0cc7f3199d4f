"""
InsightStore -- overwrite-only persistence of generated insight text.

Responsibility:
    Upserts the InsightRecord for a scope key.  Every generation, fallback
    or manual edit replaces the previous text for that key; history is not
    kept.

Invariants enforced:
    - One row per scope key (uq_insight_scope_key), with the same savepoint
      and retry handling as AttendanceService for concurrent first writes.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from event_kernel.domain.dtos import InsightScope
from event_kernel.logging_config import get_logger
from event_kernel.models.insight import InsightRecord
from event_kernel.services.base import BaseService

logger = get_logger("services.insight_store")


class InsightStore(BaseService):
    """Writes the latest insight text per scope key."""

    def _find(self, key: str) -> InsightRecord | None:
        return self.session.execute(
            select(InsightRecord)
            .where(InsightRecord.scope_key == key)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def save(
        self,
        scope: InsightScope,
        week: date,
        text: str,
        generated_at: datetime,
        *,
        is_fallback: bool = False,
        is_edited: bool = False,
    ) -> str:
        """Upsert ``text`` for the scope's record key; returns the key."""
        key = scope.record_key(week)
        row = self._find(key)
        if row is None:
            savepoint = self.session.begin_nested()
            try:
                row = InsightRecord(
                    scope_key=key,
                    scope_type=scope.scope_type,
                    scope_id=scope.scope_id,
                    week_start=None if scope.is_event else week,
                    insights=text,
                    generated_at=generated_at,
                    is_fallback=is_fallback,
                    is_edited=is_edited,
                )
                self.session.add(row)
                self.session.flush()
                savepoint.commit()
                logger.info(
                    "insight_saved",
                    extra={"scope_key": key, "is_fallback": is_fallback, "is_edited": is_edited},
                )
                return key
            except IntegrityError:
                savepoint.rollback()
                row = self._find(key)
                if row is None:
                    raise

        row.insights = text
        row.generated_at = generated_at
        row.is_fallback = is_fallback
        row.is_edited = is_edited
        if not scope.is_event:
            row.week_start = week
        self.session.flush()
        logger.info(
            "insight_overwritten",
            extra={"scope_key": key, "is_fallback": is_fallback, "is_edited": is_edited},
        )
        return key

"""
AttendanceService -- upsert of per-event attendance counters.

Responsibility:
    Writes expected and actual attendance for an event.  The row is created
    lazily on first write and updated in place afterwards, keyed by event id.

Invariants enforced:
    - At most one AttendanceStat per event: an insert that loses a race
      against a concurrent writer (IntegrityError on uq_attendance_event) is
      rolled back to a savepoint and retried as an update.
    - Counts are validated as non-negative integers before any write.

Failure modes:
    - InvalidAttendanceError for negative or non-integer counts.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from event_kernel.domain.dtos import AttendanceSnapshot
from event_kernel.exceptions import InvalidAttendanceError
from event_kernel.logging_config import get_logger
from event_kernel.models.attendance import AttendanceStat
from event_kernel.services.base import BaseService

logger = get_logger("services.attendance")


class AttendanceService(BaseService):
    """
    Attendance write service.

    Usage:
        with session_scope() as session:
            AttendanceService(session).upsert(event_id, expected=120, actual=98)
    """

    def _find(self, event_id: str) -> AttendanceStat | None:
        return self.session.execute(
            select(AttendanceStat)
            .where(AttendanceStat.event_id == event_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def upsert(self, event_id: Any, expected: int, actual: int) -> AttendanceSnapshot:
        """
        Set the attendance counters for ``event_id``.

        Returns:
            The stored counts as an AttendanceSnapshot.

        Raises:
            InvalidAttendanceError: If either count is negative or not an int.
        """
        event_id = str(event_id)
        for value in (expected, actual):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidAttendanceError(event_id, expected, actual)

        row = self._find(event_id)
        if row is None:
            savepoint = self.session.begin_nested()
            try:
                row = AttendanceStat(
                    event_id=event_id,
                    expected_attendees=expected,
                    event_attendees=actual,
                )
                self.session.add(row)
                self.session.flush()
                savepoint.commit()
                logger.info(
                    "attendance_created",
                    extra={"event_id": event_id, "expected": expected, "actual": actual},
                )
                return AttendanceSnapshot(event_id, expected, actual)
            except IntegrityError:
                logger.debug("attendance_insert_race_retry", extra={"event_id": event_id})
                savepoint.rollback()
                row = self._find(event_id)
                if row is None:
                    raise

        row.expected_attendees = expected
        row.event_attendees = actual
        self.session.flush()
        logger.info(
            "attendance_updated",
            extra={"event_id": event_id, "expected": expected, "actual": actual},
        )
        return AttendanceSnapshot(event_id, expected, actual)

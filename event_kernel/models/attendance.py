"""
Module: event_kernel.models.attendance
Responsibility: ORM persistence for expected vs. actual attendance.

Invariants enforced:
    - At most one row per event (uq_attendance_event); written only through
      AttendanceService.upsert.
    - Both counts are non-negative.
"""

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from event_kernel.db.base import TrackedBase, UUIDString


class AttendanceStat(TrackedBase):
    """Attendance counters for one event."""

    __tablename__ = "attendees"

    __table_args__ = (
        UniqueConstraint("event_id", name="uq_attendance_event"),
        CheckConstraint("expected_attendees >= 0", name="ck_expected_non_negative"),
        CheckConstraint("event_attendees >= 0", name="ck_actual_non_negative"),
    )

    event_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )

    expected_attendees: Mapped[int] = mapped_column(default=0, nullable=False)

    event_attendees: Mapped[int] = mapped_column(default=0, nullable=False)

"""
Pure domain layer.

Clock abstraction and immutable snapshot DTOs shared by the engines and
the service layer.  No ORM, database or I/O dependencies.
"""

from event_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from event_kernel.domain.dtos import (
    AttendanceSnapshot,
    EventSnapshot,
    FeedbackSnapshot,
    InsightScope,
    LineItemSnapshot,
    PortfolioSnapshot,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "EventSnapshot",
    "LineItemSnapshot",
    "AttendanceSnapshot",
    "FeedbackSnapshot",
    "PortfolioSnapshot",
    "InsightScope",
]

"""ORM models. Importing this package registers every table on Base.metadata."""

from event_kernel.models.attendance import AttendanceStat
from event_kernel.models.event import Event, EventCollaborator
from event_kernel.models.feedback import FeedbackResponse
from event_kernel.models.insight import InsightRecord, InsightUsage
from event_kernel.models.line_item import LineItem

__all__ = [
    "Event",
    "EventCollaborator",
    "LineItem",
    "AttendanceStat",
    "FeedbackResponse",
    "InsightUsage",
    "InsightRecord",
]

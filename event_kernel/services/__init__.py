"""Services for the event analytics kernel (write side)."""

from event_kernel.services.attendance_service import AttendanceService
from event_kernel.services.insight_store import InsightStore
from event_kernel.services.quota_service import QuotaService, QuotaStatus

__all__ = [
    "AttendanceService",
    "InsightStore",
    "QuotaService",
    "QuotaStatus",
]

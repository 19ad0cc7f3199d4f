"""Selectors for the event analytics kernel (read side)."""

from event_kernel.selectors.event_selector import EventSelector, ScopedEvents
from event_kernel.selectors.insight_selector import InsightSelector, SavedInsight

__all__ = [
    "EventSelector",
    "ScopedEvents",
    "InsightSelector",
    "SavedInsight",
]

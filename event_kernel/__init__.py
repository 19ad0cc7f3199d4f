"""
Event Kernel

Storage, logging, error and clock infrastructure for the event financial
and analytics aggregation engine:
- Read-only selectors returning frozen snapshots
- Upsert services for attendance and generated insights
- Weekly insight quota bookkeeping
- Structured JSON logging
"""

__version__ = "0.1.0"

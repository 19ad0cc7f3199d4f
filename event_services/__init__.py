"""
event_services -- Orchestration over the engines, the kernel and the
external collaborators.

    AnalyticsOrchestrator  fetch -> filter -> aggregate -> publish, with
                           request tokens and the stuck-fetch watchdog
    InsightService         quota-gated insight generation and editing
    collaborators          forecasting, text-generation and tier ports
    http_clients           requests-based adapters for those ports
"""

from event_services.analytics_orchestrator import (
    AnalyticsOrchestrator,
    AnalyticsRequest,
    AnalyticsResult,
    RefreshOutcome,
    RefreshStatus,
)
from event_services.collaborators import (
    ConfigTierDirectory,
    ForecastingClient,
    LocalForecastingClient,
    TextGenerationClient,
    TierDirectory,
)
from event_services.http_clients import ChatTextGenerationClient, HttpForecastingClient
from event_services.insight_service import InsightOutcome, InsightService
from event_services.watchdog import FetchWatchdog

__all__ = [
    "AnalyticsOrchestrator",
    "AnalyticsRequest",
    "AnalyticsResult",
    "RefreshOutcome",
    "RefreshStatus",
    "ConfigTierDirectory",
    "ForecastingClient",
    "LocalForecastingClient",
    "TextGenerationClient",
    "TierDirectory",
    "ChatTextGenerationClient",
    "HttpForecastingClient",
    "InsightOutcome",
    "InsightService",
    "FetchWatchdog",
]

"""
event_services.collaborators -- Ports for the external collaborators.

Responsibility:
    Abstract interfaces for the forecasting service, the text-generation
    service and the subscription tier directory, plus the in-process
    implementations backed by the baseline forecaster and the active
    configuration.  HTTP implementations live in event_services.http_clients.

Contracts:
    - ForecastingClient.forecast returns an opaque mapping with at least
      ``predictions`` (list of rows) and ``trends``; the trend merger only
      checks field presence.
    - TextGenerationClient.generate returns non-empty text or raises an
      InsightError subclass.
    - TierDirectory.limits_for is authoritative and is re-read on every
      quota check.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from event_config.schema import AnalyticsConfig, TierLimits
from event_engines.forecast import BaselineForecaster
from event_kernel.domain.clock import Clock, SystemClock
from event_kernel.domain.dtos import PortfolioSnapshot
from event_kernel.logging_config import get_logger

logger = get_logger("services.collaborators")


class ForecastingClient(ABC):
    """Long-range forecasting collaborator."""

    @abstractmethod
    def forecast(self, snapshot: PortfolioSnapshot) -> Mapping[str, Any]:
        """Forecast payload for the events, items and attendance in ``snapshot``."""


class TextGenerationClient(ABC):
    """Natural-language insight collaborator."""

    @abstractmethod
    def generate(self, prompt: str, context: Mapping[str, Any]) -> str:
        """
        Narrative text for ``prompt`` over ``context``.

        Raises:
            InsightGenerationError: Non-success response or transport error.
            MalformedInsightResponseError: Response without usable text.
        """


class TierDirectory(ABC):
    """Subscription plan name -> feature limits."""

    @abstractmethod
    def limits_for(self, plan_name: str | None) -> TierLimits:
        ...


class LocalForecastingClient(ForecastingClient):
    """Runs BaselineForecaster in-process."""

    def __init__(
        self,
        forecaster: BaselineForecaster | None = None,
        clock: Clock | None = None,
    ):
        self._forecaster = forecaster or BaselineForecaster()
        self._clock = clock or SystemClock()

    def forecast(self, snapshot: PortfolioSnapshot) -> Mapping[str, Any]:
        result = self._forecaster.forecast(
            snapshot.events,
            snapshot.items,
            snapshot.attendance,
            today=self._clock.today(),
        )
        return result.as_payload()


class ConfigTierDirectory(TierDirectory):
    """Tier limits from the active AnalyticsConfig; unknown plans get the default."""

    def __init__(self, config: AnalyticsConfig):
        self._config = config

    def limits_for(self, plan_name: str | None) -> TierLimits:
        limits = self._config.limits_for_plan(plan_name)
        if limits.plan_name != plan_name:
            logger.debug(
                "tier_defaulted",
                extra={"requested_plan": plan_name, "resolved_plan": limits.plan_name},
            )
        return limits

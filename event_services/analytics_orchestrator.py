"""
event_services.analytics_orchestrator -- Fetch, sequence and reduce one analytics refresh.

Responsibility:
    Load the user's scoped events and their child rows from storage,
    optionally fetch a forecast, run the engines (filters, portfolio
    aggregation, monthly series) and publish the result as an immutable
    ``AnalyticsResult``.

Architecture position:
    Services -- orchestration over engines + kernel selectors.

Invariants enforced:
    - Every refresh gets a monotonically increasing request token.  A
      refresh that finishes after a newer one has started is discarded;
      its result never replaces fresher data.
    - A storage failure abandons the whole cycle: no partial aggregate is
      produced and the last good result stays current.
    - A forecast failure of any kind (collaborator error, arithmetic
      error, malformed payload) only drops the predicted series; the
      historical aggregation is still published.
    - The stuck-fetch watchdog is armed for the duration of each fetch
      and disarmed on completion, failure or close().

Failure modes:
    - Nothing propagates from ``refresh``; failures are reported in the
      returned RefreshOutcome and logged.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_config.schema import AnalyticsConfig
from event_engines.portfolio import EventReport, PortfolioReport, aggregate_event, aggregate_portfolio
from event_engines.scope import FilterCriteria, VisibleEvents, apply_filters, resolve_scope
from event_engines.trends import TimeBucket, TrendMetric, bucket_by_month, merge_series
from event_kernel.domain.clock import Clock, SystemClock
from event_kernel.domain.dtos import PortfolioSnapshot
from event_kernel.domain.values import Scope
from event_kernel.exceptions import UpstreamFetchError
from event_kernel.logging_config import LogContext, get_logger
from event_kernel.selectors.event_selector import EventSelector, FallbackLookup
from event_services.collaborators import ForecastingClient
from event_services.watchdog import FetchWatchdog

logger = get_logger("services.analytics")


class RefreshStatus(str, Enum):
    APPLIED = "applied"
    STALE = "stale"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalyticsRequest:
    user_id: str
    scope: Scope = Scope.BOTH
    filters: FilterCriteria = field(default_factory=FilterCriteria)
    include_forecast: bool = True


@dataclass(frozen=True)
class AnalyticsResult:
    """One published analytics snapshot."""

    token: int
    request: AnalyticsRequest
    snapshot: PortfolioSnapshot
    visible: VisibleEvents
    report: PortfolioReport
    series: dict[TrendMetric, tuple[TimeBucket, ...]]
    forecast: Mapping[str, Any] | None
    computed_at: datetime


@dataclass(frozen=True)
class RefreshOutcome:
    token: int
    status: RefreshStatus
    result: AnalyticsResult | None
    error: UpstreamFetchError | None = None


class AnalyticsOrchestrator:
    """
    Refresh pipeline for the analytics view.

    Contract:
        ``refresh`` may be called concurrently; only the call holding the
        latest token publishes.  ``current`` is the last published result.

    Non-goals:
        - Does NOT cancel an in-flight storage query; superseded results
          are discarded when they arrive.
        - Does NOT generate insights (see InsightService).

    Usage:
        orchestrator = AnalyticsOrchestrator(get_session_factory(), config)
        outcome = orchestrator.refresh(AnalyticsRequest(user_id, Scope.BOTH))
        outcome.result.report.estimated_revenue
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        config: AnalyticsConfig,
        forecasting: ForecastingClient | None = None,
        clock: Clock | None = None,
        fallback_lookup: FallbackLookup | None = None,
        on_stuck: Callable[[int], None] | None = None,
    ):
        self._session_factory = session_factory
        self._config = config
        self._forecasting = forecasting
        self._clock = clock or SystemClock()
        self._fallback_lookup = fallback_lookup
        self._on_stuck = on_stuck
        self._lock = threading.Lock()
        self._latest_token = 0
        self._current: AnalyticsResult | None = None
        self.watchdog = FetchWatchdog(self._stuck, delay_seconds=config.watchdog_seconds)

    @property
    def current(self) -> AnalyticsResult | None:
        with self._lock:
            return self._current

    @property
    def latest_token(self) -> int:
        with self._lock:
            return self._latest_token

    def _issue_token(self) -> int:
        with self._lock:
            self._latest_token += 1
            return self._latest_token

    def _stuck(self, token: int) -> None:
        if self._on_stuck is not None:
            self._on_stuck(token)

    def _load(self, request: AnalyticsRequest) -> PortfolioSnapshot:
        try:
            with self._session_factory() as session:
                selector = EventSelector(session, fallback_lookup=self._fallback_lookup)
                scoped = selector.events_for_scope(request.user_id, request.scope)
                events = resolve_scope(scoped.owned, scoped.joined, request.scope)
                return selector.load_snapshot(events, fetched_at=self._clock.now())
        except SQLAlchemyError as exc:
            raise UpstreamFetchError("storage", str(exc)) from exc

    def _load_forecast(self, snapshot: PortfolioSnapshot) -> Mapping[str, Any] | None:
        if self._forecasting is None or not snapshot.events:
            return None
        try:
            forecast = self._forecasting.forecast(snapshot)
        except Exception as exc:
            logger.warning(
                "forecast_unavailable",
                extra={"error_type": type(exc).__name__},
                exc_info=True,
            )
            return None
        if not isinstance(forecast, Mapping):
            logger.warning("forecast_unavailable", extra={"error_type": "malformed_payload"})
            return None
        return forecast

    def _compute(
        self,
        token: int,
        request: AnalyticsRequest,
        snapshot: PortfolioSnapshot,
        forecast: Mapping[str, Any] | None,
    ) -> AnalyticsResult:
        visible = apply_filters(snapshot.events, snapshot.attendance_by_event(), request.filters)
        report = aggregate_portfolio(
            visible,
            snapshot.items,
            snapshot.attendance,
            snapshot.feedback,
            chart_top_n=self._config.chart_top_n,
        )
        attendance = snapshot.attendance_by_event()
        rows = (forecast or {}).get("predictions") or []
        if not isinstance(rows, (list, tuple)):
            rows = []
        series = {
            metric: tuple(
                merge_series(bucket_by_month(report.priced_events, metric, attendance), rows, metric)
            )
            for metric in TrendMetric
        }
        return AnalyticsResult(
            token=token,
            request=request,
            snapshot=snapshot,
            visible=visible,
            report=report,
            series=series,
            forecast=forecast,
            computed_at=self._clock.now(),
        )

    def _publish(self, result: AnalyticsResult) -> RefreshOutcome:
        with self._lock:
            if result.token != self._latest_token:
                logger.info(
                    "refresh_discarded_stale",
                    extra={"request_token": result.token, "latest_token": self._latest_token},
                )
                return RefreshOutcome(result.token, RefreshStatus.STALE, self._current)
            self._current = result
        logger.info("refresh_applied", extra={
            "request_token": result.token,
            "visible_events": result.report.total_events,
        })
        return RefreshOutcome(result.token, RefreshStatus.APPLIED, result)

    def refresh(self, request: AnalyticsRequest) -> RefreshOutcome:
        """Fetch, aggregate and publish unless superseded."""
        token = self._issue_token()
        with LogContext.bind(user_id=request.user_id, request_token=str(token)):
            logger.info("refresh_started", extra={"scope": Scope(request.scope).value})
            self.watchdog.start(token)
            try:
                snapshot = self._load(request)
                forecast = self._load_forecast(snapshot) if request.include_forecast else None
            except UpstreamFetchError as exc:
                logger.error("refresh_fetch_failed", exc_info=True)
                return RefreshOutcome(token, RefreshStatus.FAILED, self.current, exc)
            finally:
                self.watchdog.cancel(token)

            return self._publish(self._compute(token, request, snapshot, forecast))

    def recompute(self, filters: FilterCriteria) -> AnalyticsResult | None:
        """
        Re-run the engines on the current snapshot with new filters.

        No storage access; returns None when nothing has been published yet.
        """
        current = self.current
        if current is None:
            return None
        token = self._issue_token()
        request = AnalyticsRequest(
            user_id=current.request.user_id,
            scope=current.request.scope,
            filters=filters,
            include_forecast=current.request.include_forecast,
        )
        result = self._compute(token, request, current.snapshot, current.forecast)
        outcome = self._publish(result)
        return outcome.result

    def event_analytics(self, event_id: str, attendance_records: int = 0) -> EventReport | None:
        """Single-event analytics read straight from storage."""
        try:
            with self._session_factory() as session:
                selector = EventSelector(session)
                events = selector.events_by_ids([event_id])
                if not events:
                    return None
                snapshot = selector.load_snapshot(events)
        except SQLAlchemyError as exc:
            raise UpstreamFetchError("storage", str(exc)) from exc

        attendance = snapshot.attendance_by_event().get(event_id)
        return aggregate_event(
            snapshot.events[0],
            snapshot.items,
            attendance,
            snapshot.feedback,
            attendance_records=attendance_records,
        )

    def close(self) -> None:
        self.watchdog.cancel()

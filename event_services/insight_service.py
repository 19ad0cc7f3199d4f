"""
event_services.insight_service -- Quota-gated insight generation cycle.

Responsibility:
    Check the weekly quota for a scope, reserve a slot, ask the
    text-generation collaborator for a narrative over the portfolio
    context, and persist the text.  Also saves manual edits and loads the
    saved insight for the current window.

Architecture position:
    Services -- orchestration over kernel services (QuotaService,
    InsightStore), selectors (InsightSelector), engines (narrative) and
    the generator/tier collaborators.

Invariants enforced:
    - The quota slot is reserved BEFORE the generator is called and is
      not released when generation fails.  A generator that keeps failing
      therefore cannot be retried past the weekly ceiling.
    - Every reserved cycle ends with saved text: generator output on
      success, the deterministic fallback summary otherwise.
    - Failures while building the context or calling the generator are
      logged, never raised to the caller; the fallback text is saved.
    - The tier ceiling is re-read from the tier directory on every check:
      user scopes use max_ai_insights_overall, event scopes
      max_ai_insights_per_event.

Failure modes:
    - SQLAlchemy errors from the quota or insight tables propagate; the
      caller's transaction scope rolls them back.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from event_config.schema import AnalyticsConfig
from event_engines.narrative import build_insight_context, fallback_summary
from event_engines.portfolio import PortfolioReport
from event_kernel.domain.clock import Clock, SystemClock
from event_kernel.domain.dtos import InsightScope
from event_kernel.exceptions import InsightError, InsightGenerationError, QuotaExceededError
from event_kernel.logging_config import LogContext, get_logger
from event_kernel.selectors.insight_selector import InsightSelector, SavedInsight
from event_kernel.services.insight_store import InsightStore
from event_kernel.services.quota_service import QuotaService, QuotaStatus
from event_services.collaborators import TextGenerationClient, TierDirectory

logger = get_logger("services.insight")


@dataclass(frozen=True)
class InsightOutcome:
    """Result of one generation attempt."""

    scope_key: str
    quota: QuotaStatus
    text: str | None = None
    generated: bool = False
    is_fallback: bool = False
    error_code: str | None = None


class InsightService:
    """
    Insight generation for user-week and event scopes.

    Usage:
        with session_scope() as session:
            service = InsightService(session, config, tiers, generator, clock)
            outcome = service.generate(
                InsightScope.for_user(user_id), "Free", result.report, result.forecast
            )
    """

    def __init__(
        self,
        session: Session,
        config: AnalyticsConfig,
        tiers: TierDirectory,
        generator: TextGenerationClient,
        clock: Clock | None = None,
    ):
        self._config = config
        self._tiers = tiers
        self._generator = generator
        self._clock = clock or SystemClock()
        self._quota = QuotaService(session, self._clock)
        self._store = InsightStore(session)
        self._selector = InsightSelector(session)

    def ceiling_for(self, scope: InsightScope, plan_name: str | None) -> int:
        limits = self._tiers.limits_for(plan_name)
        if scope.is_event:
            return limits.max_ai_insights_per_event
        return limits.max_ai_insights_overall

    def quota_status(self, scope: InsightScope, plan_name: str | None) -> QuotaStatus:
        """Resolve or create this week's window with the plan's ceiling."""
        return self._quota.check(scope, self.ceiling_for(scope, plan_name))

    def generate(
        self,
        scope: InsightScope,
        plan_name: str | None,
        report: PortfolioReport,
        forecast: Mapping[str, Any] | None = None,
    ) -> InsightOutcome:
        """
        Run one quota-gated generation cycle.

        Returns an outcome with ``generated=False`` and no generator call
        when the window is exhausted.
        """
        status = self.quota_status(scope, plan_name)
        with LogContext.bind(scope_key=status.scope_key):
            if not status.can_generate_more:
                logger.info("insight_quota_exhausted", extra={
                    "insights_generated": status.insights_generated,
                    "max_insights": status.max_insights,
                })
                return InsightOutcome(status.scope_key, status, error_code=QuotaExceededError.code)

            try:
                status = self._quota.reserve(scope)
            except QuotaExceededError as exc:
                logger.info("insight_reservation_rejected")
                return InsightOutcome(status.scope_key, status, error_code=exc.code)

            error_code = None
            try:
                context = build_insight_context(
                    report,
                    forecast,
                    narrative_top_n=self._config.narrative_top_n,
                    chart_top_n=self._config.chart_top_n,
                )
                text = self._generator.generate(self._config.generator.prompt, context)
            except InsightError as exc:
                logger.warning("insight_generation_failed", exc_info=True)
                error_code = exc.code
            except Exception as exc:
                logger.warning(
                    "insight_generation_failed",
                    extra={"error_type": type(exc).__name__},
                    exc_info=True,
                )
                error_code = InsightGenerationError.code
            is_fallback = error_code is not None
            if is_fallback:
                text = fallback_summary(report, self._config.currency)

            self._store.save(
                scope,
                status.week_start,
                text,
                self._clock.now_utc(),
                is_fallback=is_fallback,
            )
            logger.info("insight_generated", extra={
                "is_fallback": is_fallback,
                "insights_generated": status.insights_generated,
                "max_insights": status.max_insights,
            })
            return InsightOutcome(
                scope_key=status.scope_key,
                quota=status,
                text=text,
                generated=True,
                is_fallback=is_fallback,
                error_code=error_code,
            )

    def save_edited(self, scope: InsightScope, text: str) -> str:
        """Overwrite the saved insight of the current window with ``text``."""
        return self._store.save(
            scope,
            self._quota.current_week(),
            text,
            self._clock.now_utc(),
            is_edited=True,
        )

    def load(self, scope: InsightScope) -> SavedInsight | None:
        """Saved insight for the current window, if any."""
        return self._selector.get(scope, self._quota.current_week())

"""
QuotaService -- weekly insight quota via a compare-and-increment counter row.

Responsibility:
    Tracks how many insights a scope (a user, or an event shared by its
    collaborators) has generated in the current week against the ceiling
    of the caller's subscription tier.

Architecture position:
    Kernel > Services.  Called by event_services.insight_service, which
    supplies the tier ceiling (re-read from the tier directory on every
    check) and the injected Clock.

Invariants enforced:
    - The window is the week starting on the most recent Sunday (local
      date of the injected clock); a new week starts a new counter row.
    - Reservation is a single ``UPDATE ... SET n = n + 1 WHERE n < max``.
      Two concurrent reservations against the last free slot cannot both
      succeed, because only one UPDATE matches the predicate.
    - Reservation happens BEFORE the generator is called and is never
      given back, so a failing generator cannot be retried past the
      ceiling.

Failure modes:
    - QuotaExceededError from ``reserve`` when the window is exhausted.
    - QuotaRecordNotFoundError from ``reserve`` when ``check`` has not
      created the window row yet.
    - IntegrityError on a concurrent first check is absorbed by a savepoint
      rollback and re-read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from event_kernel.domain.clock import Clock, SystemClock, week_start
from event_kernel.domain.dtos import InsightScope
from event_kernel.exceptions import QuotaExceededError, QuotaRecordNotFoundError
from event_kernel.logging_config import get_logger
from event_kernel.models.insight import InsightUsage
from event_kernel.services.base import BaseService

logger = get_logger("services.quota")


@dataclass(frozen=True)
class QuotaStatus:
    """Snapshot of one quota window."""

    scope_key: str
    week_start: date
    insights_generated: int
    max_insights: int

    @property
    def can_generate_more(self) -> bool:
        return self.insights_generated < self.max_insights

    @property
    def remaining(self) -> int:
        return max(0, self.max_insights - self.insights_generated)


class QuotaService(BaseService):
    """
    Weekly insight counter per scope.

    Contract:
        ``check`` resolves or creates the window and records the current
        ceiling; ``reserve`` consumes one slot or raises.

    Non-goals:
        - Does NOT look up subscription tiers.
        - Does NOT release a reservation when generation fails.

    Usage:
        quota = QuotaService(session, clock)
        status = quota.check(InsightScope.for_user(user_id), max_insights=5)
        if status.can_generate_more:
            quota.reserve(InsightScope.for_user(user_id))
    """

    def __init__(self, session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def current_week(self) -> date:
        return week_start(self._clock.today())

    def _find(self, scope: InsightScope, week: date) -> InsightUsage | None:
        return self.session.execute(
            select(InsightUsage)
            .where(
                InsightUsage.scope_type == scope.scope_type,
                InsightUsage.scope_id == scope.scope_id,
                InsightUsage.week_start == week,
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    @staticmethod
    def _status(scope: InsightScope, row: InsightUsage) -> QuotaStatus:
        return QuotaStatus(
            scope_key=scope.quota_key(row.week_start),
            week_start=row.week_start,
            insights_generated=row.insights_generated,
            max_insights=row.max_insights,
        )

    def check(self, scope: InsightScope, max_insights: int) -> QuotaStatus:
        """
        Resolve or create the current window and store ``max_insights``.

        Postconditions:
            A usage row exists for (scope, current week) whose ceiling is
            ``max_insights``.
        """
        week = self.current_week()
        row = self._find(scope, week)

        if row is None:
            savepoint = self.session.begin_nested()
            try:
                row = InsightUsage(
                    scope_type=scope.scope_type,
                    scope_id=scope.scope_id,
                    week_start=week,
                    insights_generated=0,
                    max_insights=max_insights,
                )
                self.session.add(row)
                self.session.flush()
                savepoint.commit()
                logger.info(
                    "quota_window_created",
                    extra={
                        "scope_key": scope.quota_key(week),
                        "max_insights": max_insights,
                    },
                )
            except IntegrityError:
                logger.debug(
                    "quota_window_race_retry",
                    extra={"scope_key": scope.quota_key(week)},
                )
                savepoint.rollback()
                row = self._find(scope, week)
                if row is None:
                    raise

        if row.max_insights != max_insights:
            row.max_insights = max_insights
            self.session.flush()

        status = self._status(scope, row)
        logger.debug(
            "quota_checked",
            extra={
                "scope_key": status.scope_key,
                "insights_generated": status.insights_generated,
                "max_insights": status.max_insights,
                "can_generate_more": status.can_generate_more,
            },
        )
        return status

    def reserve(self, scope: InsightScope) -> QuotaStatus:
        """
        Consume one slot of the current window.

        Raises:
            QuotaRecordNotFoundError: No window row for this week.
            QuotaExceededError: The window is already at its ceiling.
        """
        week = self.current_week()
        key = scope.quota_key(week)
        row = self._find(scope, week)
        if row is None:
            raise QuotaRecordNotFoundError(key, week.isoformat())

        result = self.session.execute(
            update(InsightUsage)
            .where(
                InsightUsage.id == row.id,
                InsightUsage.insights_generated < InsightUsage.max_insights,
            )
            .values(insights_generated=InsightUsage.insights_generated + 1)
            .execution_options(synchronize_session=False)
        )
        row = self._find(scope, week)

        if result.rowcount == 0:
            logger.warning(
                "quota_exceeded",
                extra={
                    "scope_key": key,
                    "insights_generated": row.insights_generated,
                    "max_insights": row.max_insights,
                },
            )
            raise QuotaExceededError(key, row.insights_generated, row.max_insights)

        status = self._status(scope, row)
        logger.info(
            "quota_reserved",
            extra={
                "scope_key": key,
                "insights_generated": status.insights_generated,
                "max_insights": status.max_insights,
            },
        )
        return status

"""Tests for the weekly insight quota (event_kernel/services/quota_service.py)."""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select

from event_kernel.domain.clock import week_start
from event_kernel.domain.dtos import InsightScope
from event_kernel.exceptions import QuotaExceededError, QuotaRecordNotFoundError
from event_kernel.models.insight import InsightUsage
from event_kernel.services.quota_service import QuotaService


class TestWeekStart:
    def test_wednesday_maps_to_previous_sunday(self):
        assert week_start(date(2025, 3, 12)) == date(2025, 3, 9)

    def test_sunday_is_its_own_week_start(self):
        assert week_start(date(2025, 3, 9)) == date(2025, 3, 9)

    def test_saturday_belongs_to_prior_sunday(self):
        assert week_start(date(2025, 3, 15)) == date(2025, 3, 9)


class TestQuotaService:
    @pytest.fixture(autouse=True)
    def _setup(self, session, deterministic_clock, user_id):
        self.session = session
        self.clock = deterministic_clock
        self.quota = QuotaService(session, deterministic_clock)
        self.scope = InsightScope.for_user(user_id)

    def test_check_creates_window(self, captured_logs):
        status = self.quota.check(self.scope, max_insights=5)
        assert status.week_start == date(2025, 3, 9)
        assert status.insights_generated == 0
        assert status.remaining == 5
        assert status.scope_key == f"user:{self.scope.scope_id}:2025-03-09"
        assert any(r["message"] == "quota_window_created" for r in captured_logs())

    def test_check_is_idempotent_within_week(self):
        self.quota.check(self.scope, 5)
        self.quota.check(self.scope, 5)
        count = self.session.scalar(select(func.count()).select_from(InsightUsage))
        assert count == 1

    def test_check_updates_ceiling_from_tier(self):
        self.quota.check(self.scope, 5)
        status = self.quota.check(self.scope, 40)
        assert status.max_insights == 40

    def test_reserve_until_exhausted(self):
        self.quota.check(self.scope, 5)
        for expected in range(1, 6):
            assert self.quota.reserve(self.scope).insights_generated == expected

        with pytest.raises(QuotaExceededError) as exc_info:
            self.quota.reserve(self.scope)
        assert exc_info.value.insights_generated == 5
        assert exc_info.value.max_insights == 5
        assert not self.quota.check(self.scope, 5).can_generate_more

    def test_reserve_without_window_raises(self):
        with pytest.raises(QuotaRecordNotFoundError):
            self.quota.reserve(self.scope)

    def test_new_week_starts_fresh_counter(self):
        self.quota.check(self.scope, 1)
        self.quota.reserve(self.scope)
        self.clock.set_time(datetime(2025, 3, 16, 12, 0, tzinfo=timezone.utc))

        status = self.quota.check(self.scope, 1)
        assert status.week_start == date(2025, 3, 16)
        assert status.can_generate_more

    def test_lowered_ceiling_blocks_reservation(self):
        self.quota.check(self.scope, 5)
        self.quota.reserve(self.scope)
        self.quota.reserve(self.scope)
        status = self.quota.check(self.scope, 2)
        assert not status.can_generate_more
        with pytest.raises(QuotaExceededError):
            self.quota.reserve(self.scope)

    def test_user_and_event_scopes_are_independent(self, user_id):
        event_scope = InsightScope.for_event(user_id)
        self.quota.check(self.scope, 1)
        self.quota.check(event_scope, 1)
        self.quota.reserve(self.scope)
        assert self.quota.reserve(event_scope).insights_generated == 1

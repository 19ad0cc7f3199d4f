"""Tests for quota-gated insight generation (event_services/insight_service.py)."""

from decimal import Decimal

import pytest

from event_engines.portfolio import aggregate_portfolio
from event_engines.scope import VisibleEvents
from event_kernel.domain.dtos import EventSnapshot, InsightScope, LineItemSnapshot
from event_kernel.exceptions import InsightGenerationError, MalformedInsightResponseError
from event_services.collaborators import ConfigTierDirectory, TextGenerationClient
from event_services.insight_service import InsightService


class RecordingGenerator(TextGenerationClient):
    def __init__(self, text="Costs are concentrated in one event.", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate(self, prompt, context):
        self.calls.append((prompt, context))
        if self.error is not None:
            raise self.error
        return self.text


def _report():
    event = EventSnapshot(id="e1", title="Gala", owner_id="u1")
    visible = VisibleEvents((event,), frozenset({"e1"}))
    return aggregate_portfolio(visible, [LineItemSnapshot("e1", Decimal("250"), 2)], [], [])


class TestInsightService:
    @pytest.fixture(autouse=True)
    def _setup(self, session, config, deterministic_clock, user_id):
        self.session = session
        self.config = config
        self.clock = deterministic_clock
        self.generator = RecordingGenerator()
        self.service = InsightService(
            session, config, ConfigTierDirectory(config), self.generator, deterministic_clock
        )
        self.scope = InsightScope.for_user(user_id)
        self.report = _report()

    def test_generates_and_saves(self, captured_logs):
        outcome = self.service.generate(self.scope, "Free", self.report)
        assert outcome.generated
        assert not outcome.is_fallback
        assert outcome.text == self.generator.text
        assert outcome.quota.insights_generated == 1
        assert self.service.load(self.scope).text == self.generator.text
        assert any(r["message"] == "insight_generated" for r in captured_logs())

    def test_generator_receives_prompt_and_context(self):
        self.service.generate(self.scope, "Free", self.report)
        prompt, context = self.generator.calls[0]
        assert prompt == self.config.generator.prompt
        assert context["totals"]["total_cost_php"] == "500.00"

    def test_free_plan_stops_after_five_without_calling_generator(self):
        for _ in range(5):
            assert self.service.generate(self.scope, "Free", self.report).generated

        outcome = self.service.generate(self.scope, "Free", self.report)
        assert not outcome.generated
        assert outcome.error_code == "QUOTA_EXCEEDED"
        assert outcome.text is None
        assert len(self.generator.calls) == 5

    def test_generator_failure_saves_fallback_and_consumes_quota(self):
        self.generator.error = InsightGenerationError("upstream 503", status_code=503)
        outcome = self.service.generate(self.scope, "Free", self.report)
        assert outcome.generated
        assert outcome.is_fallback
        assert outcome.error_code == "INSIGHT_GENERATION_FAILED"
        assert outcome.text.startswith("Overview: 1 events, 1 items; total cost PHP 500.00")
        assert outcome.quota.insights_generated == 1
        saved = self.service.load(self.scope)
        assert saved.is_fallback

    def test_malformed_response_uses_fallback(self):
        self.generator.error = MalformedInsightResponseError(["meta"])
        outcome = self.service.generate(self.scope, "Free", self.report)
        assert outcome.is_fallback
        assert outcome.error_code == "MALFORMED_INSIGHT_RESPONSE"

    def test_extreme_forecast_values_reach_generator(self):
        forecast = {"predictions": [{"date": "2025-04-01", "predicted_cost": 1e40, "predicted_revenue": float("inf")}]}
        outcome = self.service.generate(self.scope, "Free", self.report, forecast)
        assert outcome.generated
        assert not outcome.is_fallback
        _, context = self.generator.calls[0]
        row = context["predictions"]["next_30_days_summary"][0]
        assert row["predicted_cost_php"] == "1" + "0" * 40 + ".00"
        assert row["predicted_revenue_php"] == "0.00"
        assert self.service.load(self.scope).text == self.generator.text

    def test_unusable_forecast_payload_saves_fallback(self, captured_logs):
        outcome = self.service.generate(self.scope, "Free", self.report, {"predictions": 5})
        assert outcome.generated
        assert outcome.is_fallback
        assert outcome.error_code == "INSIGHT_GENERATION_FAILED"
        assert outcome.quota.insights_generated == 1
        assert self.generator.calls == []
        assert self.service.load(self.scope).is_fallback
        failures = [r for r in captured_logs() if r["message"] == "insight_generation_failed"]
        assert failures[-1]["error_type"] == "TypeError"

    def test_unexpected_generator_error_saves_fallback(self):
        self.generator.error = RuntimeError("client bug")
        outcome = self.service.generate(self.scope, "Free", self.report)
        assert outcome.is_fallback
        assert outcome.error_code == "INSIGHT_GENERATION_FAILED"
        assert self.service.load(self.scope).is_fallback

    def test_unknown_plan_uses_default_tier(self):
        assert self.service.quota_status(self.scope, "Enterprise Gold").max_insights == 5
        assert self.service.quota_status(self.scope, None).max_insights == 5

    def test_event_scope_uses_per_event_ceiling(self, user_id):
        event_scope = InsightScope.for_event(user_id)
        assert self.service.ceiling_for(event_scope, "Small Event Org") == 50
        assert self.service.ceiling_for(self.scope, "Small Event Org") == 40
        assert self.service.quota_status(event_scope, "Large Event Org").max_insights == 85

    def test_upgrading_plan_raises_ceiling_mid_week(self):
        for _ in range(5):
            self.service.generate(self.scope, "Free", self.report)
        outcome = self.service.generate(self.scope, "Small Event Org", self.report)
        assert outcome.generated
        assert outcome.quota.insights_generated == 6
        assert outcome.quota.max_insights == 40

    def test_save_edited_overwrites(self):
        self.service.generate(self.scope, "Free", self.report)
        self.service.save_edited(self.scope, "My own notes")
        saved = self.service.load(self.scope)
        assert saved.text == "My own notes"
        assert saved.is_edited
        assert not saved.is_fallback

    def test_load_without_insight(self):
        assert self.service.load(self.scope) is None

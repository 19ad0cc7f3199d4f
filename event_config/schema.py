"""
Analytics configuration schema.

Frozen dataclasses produced by the loader from a configuration set's
YAML.  ``AnalyticsConfig`` is the runtime artifact returned by
``event_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from event_kernel.exceptions import UnknownPlanError


@dataclass(frozen=True)
class TierLimits:
    """Feature limits of one subscription plan."""

    plan_name: str
    max_ai_insights_overall: int
    max_ai_insights_per_event: int


@dataclass(frozen=True)
class GeneratorSettings:
    """Text-generation collaborator settings."""

    endpoint: str
    model: str
    preamble: str
    prompt: str
    temperature: float = 0.2
    timeout_seconds: float = 30.0
    api_key_env: str = "COHERE_API_KEY"


@dataclass(frozen=True)
class ForecastSettings:
    """Forecasting collaborator settings; no endpoint means run locally."""

    endpoint: str | None = None
    timeout_seconds: float = 30.0
    horizon_months: int = 6


@dataclass(frozen=True)
class AnalyticsConfig:
    """The active analytics configuration."""

    config_id: str
    version: int
    checksum: str
    currency: str
    default_plan: str
    tiers: tuple[TierLimits, ...]
    watchdog_seconds: float
    chart_top_n: int
    narrative_top_n: int
    generator: GeneratorSettings
    forecast: ForecastSettings = field(default_factory=ForecastSettings)

    def limits_for_plan(self, plan_name: str | None, strict: bool = False) -> TierLimits:
        """
        Limits of ``plan_name``.

        Unknown or missing plans resolve to the default plan unless
        ``strict`` is set, in which case UnknownPlanError is raised.
        """
        for tier in self.tiers:
            if tier.plan_name == plan_name:
                return tier
        if strict:
            raise UnknownPlanError(str(plan_name))
        for tier in self.tiers:
            if tier.plan_name == self.default_plan:
                return tier
        raise UnknownPlanError(self.default_plan)

"""
Configuration loader (``event_config.loader``).

Loads a configuration set's ``root.yaml`` and parses it into the frozen
dataclasses of ``event_config.schema``.  Build and test tooling; runtime
callers go through ``event_config.get_active_config()``.

Failure modes:
    - Missing file -> ``FileNotFoundError``.
    - Malformed YAML -> ``yaml.YAMLError``.
    - Missing required keys -> ``KeyError``.
    - Non-positive sizes or a default plan without a tier -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from event_config.schema import (
    AnalyticsConfig,
    ForecastSettings,
    GeneratorSettings,
    TierLimits,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical (sorted-key) JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_tier(name: str, data: dict[str, Any]) -> TierLimits:
    return TierLimits(
        plan_name=name,
        max_ai_insights_overall=int(data["max_ai_insights_overall"]),
        max_ai_insights_per_event=int(data["max_ai_insights_per_event"]),
    )


def parse_generator(data: dict[str, Any]) -> GeneratorSettings:
    return GeneratorSettings(
        endpoint=data["endpoint"],
        model=data["model"],
        preamble=data["preamble"].strip(),
        prompt=data["prompt"].strip(),
        temperature=float(data.get("temperature", 0.2)),
        timeout_seconds=float(data.get("timeout_seconds", 30)),
        api_key_env=data.get("api_key_env", "COHERE_API_KEY"),
    )


def parse_forecast(data: dict[str, Any] | None) -> ForecastSettings:
    data = data or {}
    return ForecastSettings(
        endpoint=data.get("endpoint") or None,
        timeout_seconds=float(data.get("timeout_seconds", 30)),
        horizon_months=int(data.get("horizon_months", 6)),
    )


def parse_config(data: dict[str, Any]) -> AnalyticsConfig:
    """Parse a root.yaml mapping into an AnalyticsConfig."""
    tiers = tuple(parse_tier(name, limits) for name, limits in data["tiers"].items())
    default_plan = data.get("default_plan", "Free")
    if default_plan not in {t.plan_name for t in tiers}:
        raise ValueError(f"default_plan {default_plan!r} has no tier definition")

    analytics = data.get("analytics", {})
    watchdog_seconds = float(analytics.get("watchdog_seconds", 120))
    chart_top_n = int(analytics.get("chart_top_n", 10))
    narrative_top_n = int(analytics.get("narrative_top_n", 5))
    for key, value in (
        ("watchdog_seconds", watchdog_seconds),
        ("chart_top_n", chart_top_n),
        ("narrative_top_n", narrative_top_n),
    ):
        if value <= 0:
            raise ValueError(f"{key} must be positive, got {value}")

    return AnalyticsConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        checksum=compute_checksum(data),
        currency=data.get("currency", "PHP"),
        default_plan=default_plan,
        tiers=tiers,
        watchdog_seconds=watchdog_seconds,
        chart_top_n=chart_top_n,
        narrative_top_n=narrative_top_n,
        generator=parse_generator(data["generator"]),
        forecast=parse_forecast(data.get("forecast")),
    )


def load_config_set(directory: Path) -> AnalyticsConfig:
    """Load and parse ``<directory>/root.yaml``."""
    return parse_config(load_yaml_file(directory / "root.yaml"))

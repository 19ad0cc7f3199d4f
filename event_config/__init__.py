"""
event_config -- single public entrypoint for analytics configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration: subscription tiers, the stuck-fetch watchdog delay,
    top-N sizes, currency, and the generator and forecaster settings.

Architecture position:
    Configuration -- sits above event_kernel and below event_services.
    The kernel and the engines never import from event_config.

Invariants enforced:
    - Same YAML always produces the same checksum.
    - Every successful call emits an ``EVENT_CONFIG_TRACE`` log record
      with the config id, version and checksum.

Failure modes:
    - FileNotFoundError when the requested configuration set is missing.
    - ValueError / KeyError for malformed configuration.
"""

from __future__ import annotations

import logging
from pathlib import Path

from event_config.loader import load_config_set
from event_config.schema import (
    AnalyticsConfig,
    ForecastSettings,
    GeneratorSettings,
    TierLimits,
)

_logger = logging.getLogger("event_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DEFAULT_CONFIG_SET = "default"


def get_active_config(
    config_set: str = DEFAULT_CONFIG_SET,
    config_dir: Path | None = None,
) -> AnalyticsConfig:
    """
    Load the named configuration set.

    Args:
        config_set: Subdirectory name under the sets directory.
        config_dir: Override for the sets directory (tests).

    Raises:
        FileNotFoundError: If the set has no root.yaml.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    set_dir = sets_dir / config_set
    if not (set_dir / "root.yaml").is_file():
        raise FileNotFoundError(f"Configuration set not found: {set_dir}")

    config = load_config_set(set_dir)

    _logger.info(
        "EVENT_CONFIG_TRACE",
        extra={
            "trace_type": "EVENT_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "tier_count": len(config.tiers),
        },
    )
    return config


__all__ = [
    "AnalyticsConfig",
    "ForecastSettings",
    "GeneratorSettings",
    "TierLimits",
    "get_active_config",
]

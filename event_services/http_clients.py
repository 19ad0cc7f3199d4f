"""
event_services.http_clients -- requests-based collaborator adapters.

Responsibility:
    HTTP implementations of the text-generation and forecasting ports.

Failure modes:
    - Transport errors and non-2xx responses from the generator become
      InsightGenerationError; a 2xx response without text becomes
      MalformedInsightResponseError.  The insight service turns both into
      the fallback summary.
    - Forecast transport errors and non-2xx responses become
      UpstreamFetchError(source="forecast").
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import asdict
from typing import Any

import requests

from event_config.schema import ForecastSettings, GeneratorSettings
from event_kernel.domain.dtos import PortfolioSnapshot
from event_kernel.exceptions import (
    InsightGenerationError,
    MalformedInsightResponseError,
    UpstreamFetchError,
)
from event_kernel.logging_config import get_logger
from event_services.collaborators import ForecastingClient, TextGenerationClient

logger = get_logger("services.http")


def parse_generated_text(data: Any) -> str:
    """
    Extract narrative text from a chat-style response body.

    Accepts ``{"text": ...}`` or ``{"message": {"content": [{"text": ...}]}}``.

    Raises:
        MalformedInsightResponseError: When neither shape carries text.
    """
    if not isinstance(data, Mapping):
        raise MalformedInsightResponseError([])
    text = data.get("text")
    if not text:
        message = data.get("message")
        content = message.get("content") if isinstance(message, Mapping) else None
        if isinstance(content, list) and content and isinstance(content[0], Mapping):
            text = content[0].get("text")
    if not isinstance(text, str) or not text.strip():
        raise MalformedInsightResponseError(sorted(data.keys()))
    return text.strip()


class ChatTextGenerationClient(TextGenerationClient):
    """
    Chat-endpoint generator: one message carrying the JSON context and the
    prompt, with a fixed preamble.
    """

    def __init__(self, settings: GeneratorSettings, api_key: str | None = None):
        self.settings = settings
        self.api_key = api_key if api_key is not None else os.getenv(settings.api_key_env)

    def build_payload(self, prompt: str, context: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "model": self.settings.model,
            "preamble": self.settings.preamble,
            "message": f"Context: {json.dumps(context, default=str)}\n\nQuestion: {prompt}",
            "temperature": self.settings.temperature,
        }

    def generate(self, prompt: str, context: Mapping[str, Any]) -> str:
        if not self.api_key:
            raise InsightGenerationError("generator API key is not configured")

        try:
            response = requests.post(
                self.settings.endpoint,
                json=self.build_payload(prompt, context),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.settings.timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise InsightGenerationError(str(exc), status_code=status) from exc
        except requests.RequestException as exc:
            raise InsightGenerationError(str(exc)) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedInsightResponseError([]) from exc

        text = parse_generated_text(data)
        logger.info("insight_text_received", extra={"length": len(text)})
        return text


def _snapshot_payload(snapshot: PortfolioSnapshot) -> dict[str, Any]:
    return {
        "events": [
            {
                **asdict(e),
                "user_id": e.owner_id,
                "date": e.date.isoformat() if e.date else None,
            }
            for e in snapshot.events
        ],
        "items": [
            {
                "event_id": i.event_id,
                "cost": i.cost,
                "item_quantity": i.quantity,
                "item_name": i.name,
            }
            for i in snapshot.items
        ],
        "attStats": [asdict(a) for a in snapshot.attendance],
    }


class HttpForecastingClient(ForecastingClient):
    """POSTs the snapshot to a remote forecasting endpoint."""

    def __init__(self, settings: ForecastSettings, headers: Mapping[str, str] | None = None):
        if not settings.endpoint:
            raise ValueError("HttpForecastingClient requires a forecast endpoint")
        self.settings = settings
        self.headers = dict(headers or {})

    def forecast(self, snapshot: PortfolioSnapshot) -> Mapping[str, Any]:
        body = json.loads(json.dumps(_snapshot_payload(snapshot), default=str))
        try:
            response = requests.post(
                self.settings.endpoint,
                json=body,
                headers=self.headers,
                timeout=self.settings.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise UpstreamFetchError("forecast", str(exc)) from exc

        if not isinstance(data, Mapping) or "predictions" not in data:
            raise UpstreamFetchError("forecast", "response has no predictions")
        return data

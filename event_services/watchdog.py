"""
event_services.watchdog -- Cancellable stuck-fetch timer.

A FetchWatchdog is started when a fetch begins and cancelled when it
completes or when its owner is torn down.  If it is still armed after the
configured delay it fires ``on_stuck`` once, so the caller can surface a
manual retry.  It is a liveness signal only; the fetch itself is not
interrupted.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from event_kernel.logging_config import get_logger

logger = get_logger("services.watchdog")

DEFAULT_DELAY_SECONDS = 120.0


class FetchWatchdog:
    """
    One-shot timer per fetch.

    Guarantees:
        - ``start`` replaces any armed timer, so only the latest fetch can
          fire.
        - ``cancel`` is idempotent and safe to call from any thread.
        - ``on_stuck`` receives the token passed to ``start``.
    """

    def __init__(
        self,
        on_stuck: Callable[[int], None],
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
    ):
        self._on_stuck = on_stuck
        self.delay_seconds = delay_seconds
        self._timer: threading.Timer | None = None
        self._token: int | None = None
        self._lock = threading.Lock()
        self.stuck = False

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    def start(self, token: int) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self.stuck = False
            self._token = token
            self._timer = threading.Timer(self.delay_seconds, self._fire, args=(token,))
            self._timer.daemon = True
            self._timer.start()
        logger.debug("watchdog_started", extra={"request_token": token})

    def cancel(self, token: int | None = None) -> None:
        """Disarm the timer; with ``token``, only if it belongs to that fetch."""
        with self._lock:
            if self._timer is None:
                return
            if token is not None and token != self._token:
                return
            self._timer.cancel()
            self._timer = None
            token = self._token
        logger.debug("watchdog_cancelled", extra={"request_token": token})

    def _fire(self, token: int) -> None:
        with self._lock:
            if self._token != token or self._timer is None:
                return
            self._timer = None
            self.stuck = True
        logger.warning(
            "fetch_stuck",
            extra={"request_token": token, "delay_seconds": self.delay_seconds},
        )
        self._on_stuck(token)

"""
callshield/api/webhook.py
==========================
Webhook event forwarding — CallShield

``WebhookSink`` is an EventSink that POSTs each event as JSON to
``WEBHOOK_URL``. Delivery runs on a private asyncio loop in a daemon thread
so producers calling the sink never wait on the network.

Transient failures (connection errors, timeouts, 429 and 5xx responses)
are retried with exponential back-off; anything else is logged and dropped.

This module does NOT:
    - Decide which events exist (that is callshield/events.py)
    - Retry forever: MAX_RETRIES bounds every delivery
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any

import aiohttp

from callshield.events import Event, event_to_dict

logger = logging.getLogger("callshield.api.webhook")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

MAX_RETRIES: int = 4          # total attempts = MAX_RETRIES + 1
BASE_DELAY: float = 1.0       # seconds
MAX_DELAY: float = 30.0
BACKOFF_FACTOR: float = 2.0
REQUEST_TIMEOUT: float = 30.0

_RETRYABLE_STATUS_CODES: set[int] = {429, 500, 502, 503, 504}


class WebhookDeliveryError(Exception):
    """Raised for a non-2xx webhook response."""

    def __init__(self, status: int, url: str) -> None:
        self.status = status
        self.url = url
        super().__init__(f"Webhook {url} returned HTTP {status}")


def is_retryable(exc: Exception) -> bool:
    """Return True if ``exc`` is a transient delivery failure."""
    if isinstance(exc, WebhookDeliveryError):
        return exc.status in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (aiohttp.ClientConnectionError, asyncio.TimeoutError))


def backoff_delays(
    retries: int = MAX_RETRIES,
    base: float = BASE_DELAY,
    factor: float = BACKOFF_FACTOR,
    cap: float = MAX_DELAY,
) -> list[float]:
    """Sleep durations between successive attempts."""
    delays = []
    delay = base
    for _ in range(retries):
        delays.append(delay)
        delay = min(delay * factor, cap)
    return delays


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


async def post_with_retry(
    session: aiohttp.ClientSession,
    url: str,
    payload: dict[str, Any],
    delays: list[float] | None = None,
) -> int:
    """
    POST ``payload`` to ``url``, retrying transient failures.

    Returns:
        The final HTTP status.

    Raises:
        The last exception if the failure is permanent or retries run out.
    """
    delays = backoff_delays() if delays is None else delays
    attempts = len(delays) + 1

    for attempt in range(attempts):
        try:
            async with session.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
            ) as resp:
                if resp.status >= 400:
                    raise WebhookDeliveryError(resp.status, url)
                logger.debug("Webhook POST %s: status %d", payload.get("type"), resp.status)
                return resp.status
        except Exception as exc:
            if not is_retryable(exc):
                logger.warning("Webhook delivery failed permanently: %s", exc)
                raise
            if attempt < attempts - 1:
                logger.warning(
                    "Webhook delivery failed (attempt %d/%d): %s, retrying in %.1fs",
                    attempt + 1, attempts, exc, delays[attempt],
                )
                await asyncio.sleep(delays[attempt])
            else:
                logger.error("Webhook delivery failed after %d attempts: %s", attempts, exc)
                raise
    raise RuntimeError("unreachable")


class WebhookSink:
    """Fire-and-forget EventSink backed by aiohttp."""

    def __init__(self, url: str) -> None:
        self._url = url
        self._loop = asyncio.new_event_loop()
        self._session: aiohttp.ClientSession | None = None
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="webhook-sink", daemon=True,
        )
        self._thread.start()
        logger.info("Forwarding events to %s", url)

    def __call__(self, event: Event) -> Future:
        payload = event_to_dict(event)
        future = asyncio.run_coroutine_threadsafe(self._deliver(payload), self._loop)
        future.add_done_callback(self._log_failure)
        return future

    async def _deliver(self, payload: dict[str, Any]) -> int:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return await post_with_retry(self._session, self._url, payload)

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Dropped webhook event: %s", exc)

    def close(self) -> None:
        async def _close_session() -> None:
            if self._session is not None:
                await self._session.close()

        if self._loop.is_running():
            asyncio.run_coroutine_threadsafe(_close_session(), self._loop).result(timeout=5)
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)
        self._loop.close()

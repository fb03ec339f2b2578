"""
Outbound HTTP with retries.

Transient failures (rate limits, 5xx, timeouts and connection errors) are
retried with exponential backoff and jitter. A `Retry-After` header on a
retryable response overrides the computed delay.
"""

from __future__ import annotations

import asyncio
import random
from typing import Iterable

import httpx
import structlog

from assistant_relay.monitoring.metrics import get_metrics

logger = structlog.get_logger()


RETRY_STATUSES = {429, 500, 502, 503, 504}


def _backoff_delay(attempt: int, base_backoff: float, max_backoff: float) -> float:
    delay = min(max_backoff, base_backoff * (2 ** (attempt - 1)))
    return delay + random.uniform(0, delay / 2)


def _retry_after(response: httpx.Response, fallback: float) -> float:
    header = response.headers.get("Retry-After")
    if not header:
        return fallback
    try:
        return float(header)
    except ValueError:
        # HTTP-date form; not worth parsing for the services we call.
        return fallback


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_attempts: int = 3,
    retry_statuses: Iterable[int] | None = None,
    base_backoff: float = 0.5,
    max_backoff: float = 8.0,
    operation: str = "request",
    **kwargs,
) -> httpx.Response:
    """
    Send one request, retrying transient failures up to `max_attempts` times.

    The last response is returned even when its status is retryable, so the
    caller decides how to report it. The last transport error is re-raised.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    statuses = set(retry_statuses or RETRY_STATUSES)

    for attempt in range(1, max_attempts + 1):
        final = attempt == max_attempts
        try:
            response = await client.request(method, url, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            if final:
                raise
            delay = _backoff_delay(attempt, base_backoff, max_backoff)
            reason = "timeout" if isinstance(e, httpx.TimeoutException) else "network"
            logger.warning(
                "Outbound request failed, retrying",
                operation=operation,
                attempt=attempt,
                reason=reason,
                delay=delay,
                error=str(e),
            )
        else:
            if final or response.status_code not in statuses:
                return response
            delay = _retry_after(response, _backoff_delay(attempt, base_backoff, max_backoff))
            reason = str(response.status_code)
            logger.warning(
                "Outbound request returned retryable status",
                operation=operation,
                attempt=attempt,
                status_code=response.status_code,
                delay=delay,
            )

        get_metrics().record_http_retry(operation, reason)
        await asyncio.sleep(delay)

    raise AssertionError("retry loop exited without a result")  # pragma: no cover

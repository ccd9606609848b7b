"""Retry, timeout, and failure classification around service calls."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional

from namewise.config.models import RetrySettings
from namewise.providers.base import GenerationRequest, GenerationResponse, GenerativeTextService
from namewise.providers.errors import (
    ProviderAuthFailure,
    ProviderError,
    ProviderNetworkFailure,
    ProviderRateLimited,
    ProviderUnknownFailure,
)

from .events import EventBus, InvocationEvent
from .metrics import InvocationMetrics

LOGGER = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]

_NETWORK_MARKERS = ("econnrefused", "etimedout", "network", "connection", "timed out")
_AUTH_MARKERS = ("authentication", "unauthorized")


@dataclass
class RetryState:
    """Bookkeeping for the retry that is about to happen."""

    attempt: int
    last_error: ProviderError
    delay_seconds: float


def _status_of(exc: BaseException) -> Optional[int]:
    for attribute in ("status", "status_code"):
        value = getattr(exc, attribute, None)
        if isinstance(value, int):
            return value
    return None


def _reset_time(exc: BaseException) -> Optional[datetime]:
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is None:
        headers = getattr(exc, "headers", None)
        if headers is None:
            headers = getattr(getattr(exc, "response", None), "headers", None)
        if headers is not None:
            retry_after = headers.get("retry-after") or headers.get("Retry-After")
    if retry_after is None:
        return None
    try:
        seconds = float(retry_after)
    except (TypeError, ValueError):
        return None
    return datetime.now(timezone.utc) + timedelta(seconds=seconds)


def classify_failure(exc: BaseException) -> ProviderError:
    """Map an arbitrary exception raised by a service onto :class:`ProviderError`.

    Args:
        exc: Exception raised by ``GenerativeTextService.generate``.

    Returns:
        ProviderError: ``exc`` itself when already classified, otherwise a
        rate-limit, authentication, network, or unknown failure.
    """
    if isinstance(exc, ProviderError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return ProviderNetworkFailure("Request timed out")
    if isinstance(exc, ConnectionError):
        return ProviderNetworkFailure(str(exc) or "Connection failed")

    status = _status_of(exc)
    message = str(exc) or exc.__class__.__name__
    lowered = message.lower()

    if status == 429 or "rate limit" in lowered:
        return ProviderRateLimited(message, reset_at=_reset_time(exc), status=status or 429)
    if status in (401, 403) or any(marker in lowered for marker in _AUTH_MARKERS):
        return ProviderAuthFailure(message, status=status)
    if any(marker in lowered for marker in _NETWORK_MARKERS):
        return ProviderNetworkFailure(message, status=status)
    return ProviderUnknownFailure(message, status=status)


class ResilientInvoker:
    """Call a text-generation service with timeouts and exponential backoff.

    Backoff waits through an awaitable ``sleep`` so one request's delay
    never blocks other requests sharing the event loop.
    """

    def __init__(
        self,
        settings: Optional[RetrySettings] = None,
        *,
        event_bus: Optional[EventBus] = None,
        sleep: SleepFn = asyncio.sleep,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or RetrySettings()
        self.events = event_bus or EventBus()
        self.metrics = InvocationMetrics()
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._clock = clock

    def backoff_delay(self, retry_number: int) -> float:
        """Return seconds to wait before the ``retry_number``-th retry (1-based)."""
        base = self.settings.base_delay_ms / 1000.0
        ceiling = self.settings.max_delay_ms / 1000.0
        delay = min(base * (2 ** (retry_number - 1)), ceiling)
        return delay + self._rng.uniform(0, self.settings.jitter_ratio * delay)

    async def invoke(
        self, service: GenerativeTextService, request: GenerationRequest
    ) -> GenerationResponse:
        """Return the service response, retrying retryable failures.

        Args:
            service: Target text-generation service.
            request: Request to send.

        Returns:
            GenerationResponse: The first successful response.

        Raises:
            ProviderError: The last classified failure, with ``retries`` set,
                once it is non-retryable or retries are exhausted.
        """
        self.metrics.total_requests += 1
        retries = 0

        while True:
            self.metrics.attempts += 1
            attempt = retries + 1
            self._emit("request-started", request, attempt)
            started = self._clock()

            try:
                response = await self._call(service, request)
            except Exception as exc:
                error = classify_failure(exc)
                self._emit(
                    "error",
                    request,
                    attempt,
                    code=error.code,
                    message=error.message,
                    retryable=error.retryable,
                )
                if isinstance(error, ProviderRateLimited):
                    self.metrics.last_rate_limit_reset = error.reset_at
                    self._emit(
                        "rate-limited",
                        request,
                        attempt,
                        reset_at=error.reset_at.isoformat() if error.reset_at else None,
                    )

                if not error.retryable or retries >= self.settings.max_retries:
                    error.retries = retries
                    self.metrics.record_failure()
                    LOGGER.warning(
                        "Request to %s failed after %d retries: %s",
                        request.model,
                        retries,
                        error.message,
                    )
                    if error is exc:
                        raise
                    raise error from exc

                retries += 1
                self.metrics.retries += 1
                state = RetryState(
                    attempt=retries,
                    last_error=error,
                    delay_seconds=self.backoff_delay(retries),
                )
                LOGGER.warning(
                    "Retrying %s (%d/%d) in %.2fs after %s",
                    request.model,
                    state.attempt,
                    self.settings.max_retries,
                    state.delay_seconds,
                    error.code,
                )
                await self._sleep(state.delay_seconds)
                continue

            latency_ms = (self._clock() - started) * 1000.0
            self.metrics.record_success(latency_ms, response.usage.total)
            self._emit(
                "response",
                request,
                attempt,
                tokens=response.usage.total,
                finish_reason=response.finish_reason,
                latency_ms=round(latency_ms, 2),
            )
            return response

    async def _call(
        self, service: GenerativeTextService, request: GenerationRequest
    ) -> GenerationResponse:
        timeout = self.settings.timeout_seconds
        if timeout and timeout > 0:
            return await asyncio.wait_for(service.generate(request), timeout=timeout)
        return await service.generate(request)

    def _emit(self, kind: str, request: GenerationRequest, attempt: int, **detail: Any) -> None:
        self.events.emit(
            InvocationEvent(kind=kind, model=request.model, attempt=attempt, detail=detail)
        )


__all__ = ["ResilientInvoker", "RetryState", "classify_failure"]

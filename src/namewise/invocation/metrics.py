"""Invocation counters."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class InvocationMetrics:
    """Running totals for one invoker.

    ``average_latency_ms`` is an incremental mean over successful calls.
    """

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    attempts: int = 0
    retries: int = 0
    total_tokens: int = 0
    average_latency_ms: float = 0.0
    last_rate_limit_reset: Optional[datetime] = None

    def record_success(self, latency_ms: float, tokens: int) -> None:
        self.successful_requests += 1
        self.total_tokens += tokens
        self.average_latency_ms += (latency_ms - self.average_latency_ms) / self.successful_requests

    def record_failure(self) -> None:
        self.failed_requests += 1

    def snapshot(self) -> dict:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "attempts": self.attempts,
            "retries": self.retries,
            "total_tokens": self.total_tokens,
            "average_latency_ms": round(self.average_latency_ms, 2),
            "last_rate_limit_reset": (
                self.last_rate_limit_reset.isoformat() if self.last_rate_limit_reset else None
            ),
        }


__all__ = ["InvocationMetrics"]

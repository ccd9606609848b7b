"""Resilient invocation of text-generation services."""

from .events import EventBus, InvocationEvent
from .metrics import InvocationMetrics
from .resilient import ResilientInvoker, RetryState, classify_failure

__all__ = [
    "EventBus",
    "InvocationEvent",
    "InvocationMetrics",
    "ResilientInvoker",
    "RetryState",
    "classify_failure",
]

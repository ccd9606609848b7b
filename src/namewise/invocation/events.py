"""Lifecycle events published by the invoker."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, Field

LOGGER = logging.getLogger(__name__)

EventKind = Literal["request-started", "response", "error", "rate-limited"]
EVENT_KINDS = ("request-started", "response", "error", "rate-limited")


class InvocationEvent(BaseModel):
    """A single lifecycle notification.

    Attributes:
        kind: Event type.
        model: Model the request targeted.
        attempt: One-based attempt number.
        detail: Event-specific payload such as error code or token usage.
        emitted_at: UTC timestamp of emission.
    """

    kind: EventKind
    model: Optional[str] = None
    attempt: int = 1
    detail: Dict[str, Any] = Field(default_factory=dict)
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[InvocationEvent], Any]


class EventBus:
    """Deliver invocation events to subscribers without blocking the caller.

    Delivery is scheduled on the running event loop. Listeners may be plain
    callables or coroutine functions; their exceptions are logged and never
    reach the code that emitted the event.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, kind: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for ``kind`` and return an unsubscribe callback.

        Raises:
            ValueError: If ``kind`` is not a known event type.
        """
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown event kind '{kind}'")
        self._listeners[kind].append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners[kind]:
                self._listeners[kind].remove(listener)

        return _unsubscribe

    def emit(self, event: InvocationEvent) -> None:
        listeners = list(self._listeners.get(event.kind, ()))
        if not listeners:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for listener in listeners:
            if loop is None:
                self._deliver(listener, event, None)
            else:
                loop.call_soon(self._deliver, listener, event, loop)

    def _deliver(
        self,
        listener: Listener,
        event: InvocationEvent,
        loop: Optional[asyncio.AbstractEventLoop],
    ) -> None:
        try:
            outcome = listener(event)
        except Exception:
            LOGGER.exception("Event listener failed for %s", event.kind)
            return

        if inspect.isawaitable(outcome):
            if loop is None:
                LOGGER.warning("Dropping async listener for %s outside an event loop", event.kind)
                close = getattr(outcome, "close", None)
                if close is not None:
                    close()
                return
            task = loop.create_task(self._await_listener(outcome, event.kind))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    @staticmethod
    async def _await_listener(outcome, kind: str) -> None:
        try:
            await outcome
        except Exception:
            LOGGER.exception("Async event listener failed for %s", kind)


__all__ = ["EventBus", "EventKind", "EVENT_KINDS", "InvocationEvent", "Listener"]

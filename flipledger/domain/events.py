"""Domain event dispatch."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Iterable, Mapping

logger = logging.getLogger(__name__)

EventPayload = Mapping[str, Any]
EventListener = Callable[[EventPayload], Awaitable[None]]

MUTATION_COMMITTED = "ledger.mutation.committed"
PAYMENT_REPLAYED = "ledger.payment.replayed"
INVARIANT_VIOLATED = "ledger.invariant.violated"
USER_REGISTERED = "ledger.user.registered"


class EventBus:
    """Async pub-sub used to observe ledger activity.

    Events are published after the record write they describe has completed,
    so a failing listener is logged and skipped rather than reported to the
    caller of an already-committed mutation.
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, list[EventListener]] = defaultdict(list)

    def subscribe(self, event_name: str, listener: EventListener) -> None:
        self._listeners[event_name].append(listener)

    async def publish(self, event_name: str, payload: EventPayload) -> None:
        for listener in list(self._listeners.get(event_name, ())):
            try:
                await listener(payload)
            except Exception:
                logger.exception("Listener for %s failed", event_name)

    def clear(self) -> None:
        self._listeners.clear()

    def listeners(self, event_name: str) -> Iterable[EventListener]:
        return tuple(self._listeners.get(event_name, ()))

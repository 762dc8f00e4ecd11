"""
Reload Signal

A process-wide notification that the entity store was changed behind the
ledger's back (a restore, a sync from another device). Every subscribed
LedgerState reloads all of its collections when the signal fires.

DESIGN DECISION: The signal is an explicit object passed to whoever needs
it. A module-level instance exists for callers that want one shared bus,
but nothing in the ledger reaches for it implicitly.
"""

from datetime import datetime, timezone
from typing import Awaitable, Callable, NamedTuple, Optional
from uuid import UUID

import structlog


logger = structlog.get_logger("finance_ledger.sync")


class ReloadEvent(NamedTuple):
    reason: str
    fired_at: datetime
    correlation_id: Optional[UUID] = None


ReloadHandler = Callable[[ReloadEvent], Awaitable[None]]


class ReloadSignal:
    """Async pub/sub for "reload everything from the store"."""

    def __init__(self):
        self._subscribers: list[ReloadHandler] = []

    def subscribe(self, handler: ReloadHandler) -> None:
        if handler not in self._subscribers:
            self._subscribers.append(handler)

    def unsubscribe(self, handler: ReloadHandler) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def fire(
        self,
        reason: str = "external_sync",
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Notify every subscriber, one after another.

        Returns the number of subscribers notified. A handler that raises
        stops the fan-out and the error propagates to the caller.
        """
        event = ReloadEvent(
            reason=reason,
            fired_at=datetime.now(timezone.utc),
            correlation_id=correlation_id,
        )
        handlers = list(self._subscribers)
        logger.info(
            "reload_signal_fired",
            reason=reason,
            subscribers=len(handlers),
            correlation_id=str(correlation_id) if correlation_id else None,
        )
        for handler in handlers:
            await handler(event)
        return len(handlers)


process_reload_signal = ReloadSignal()

"""
Activity Logger

DESIGN DECISION: Every ledger mutation is logged as one structured event.
This provides:
1. Traceability of balance changes while debugging
2. Visibility into soft failures (dangling references, zero amounts)
3. A hook for the UI to surface persistence errors

The activity logger:
- Never blocks the ledger (no I/O beyond the log handler)
- Never raises if a listener fails
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Callable, Optional
from uuid import UUID, uuid4

import structlog

from finance_ledger.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
)


ActivityListener = Callable[[ActivityEvent], None]


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route the JSON lines produced by structlog to stderr at the given level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class ActivityLogger:
    """
    Central activity logging service.

    Logs events to:
    1. Structured local log (structlog, JSON lines)
    2. Any registered listeners (e.g., a UI error banner)
    """

    def __init__(
        self,
        listeners: Optional[list[ActivityListener]] = None,
    ):
        self._listeners: list[ActivityListener] = list(listeners or [])
        self._logger = structlog.get_logger("finance_ledger")

    def add_listener(self, listener: ActivityListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ActivityListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event locally and hand it to every listener."""
        log_dict = event.to_log_dict()

        if event.severity in (ActivitySeverity.ERROR, ActivitySeverity.CRITICAL):
            self._logger.error("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "activity_listener_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )

    def log_reference_not_found(
        self,
        entity_type: str,
        entity_id: str,
        operation: str,
    ) -> None:
        """Log a soft failure caused by an id that does not exist."""
        self.log(
            ActivityEventBuilder.reference_not_found(
                entity_type=entity_type,
                entity_id=entity_id,
                operation=operation,
            )
        )

    def log_persistence_failed(self, keys: list[str], error: Exception) -> None:
        """Log a store write that raised."""
        self.log(
            ActivityEventBuilder.persistence_failed(
                keys=keys,
                error_message=str(error),
            )
        )

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(
            ActivityEventBuilder.system_error(
                error_type=error_type,
                error_message=error_message,
                details=details,
                correlation_id=correlation_id,
            )
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of an action that fans out (e.g., a backup
    restore and the reloads it triggers).
    """
    return uuid4()

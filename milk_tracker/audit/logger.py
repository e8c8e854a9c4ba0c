"""
Audit Logger

DESIGN DECISION: Every significant change to the user's data is logged.
This provides:
1. Traceability of settings rollouts and day edits
2. Debugging capability when stored records had to be repaired

The audit logger:
- Is synchronous, like the core operations that call it
- Writes only to the local structured log
- Keeps a bounded in-process history for inspection
"""

import logging
from collections import deque
from typing import Optional

import structlog

from milk_tracker.models.audit import AuditEvent, AuditSeverity


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


class AuditLogger:
    """
    Central audit logging service.

    Logs every event to the structured local log and remembers the most
    recent ones.
    """

    def __init__(self, history_limit: int = 500, debug: bool = False):
        """
        Initialize audit logger.

        Args:
            history_limit: Events kept in memory. 0 keeps none.
            debug: Emit DEBUG-severity events to the log.
        """
        self._history: deque[AuditEvent] = deque(maxlen=history_limit)
        if debug:
            logging.getLogger("milk_tracker.audit").setLevel(logging.DEBUG)
        self._logger = structlog.get_logger("milk_tracker.audit")

    def log(self, event: AuditEvent) -> AuditEvent:
        """Log an audit event and return it."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)
        return event

    @property
    def history(self) -> list[AuditEvent]:
        """Recent events, oldest first."""
        return list(self._history)

    def recent(self, limit: int = 20) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))[:limit]

    def find(self, event_type: Optional[str] = None) -> list[AuditEvent]:
        """Events of one type, oldest first."""
        if event_type is None:
            return self.history
        return [e for e in self._history if e.event_type.value == event_type]

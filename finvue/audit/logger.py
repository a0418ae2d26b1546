"""
Activity Logger

DESIGN DECISION: Every state-changing action in the system is logged.
This provides:
1. Complete traceability for admins (the Activity Log page)
2. Debugging capability
3. Accountability for approvals and deletions

The activity logger:
- Never raises (a failing sink does not roll back the mutation)
- Writes to the structured local log AND to the ledger's own capped log
"""

from abc import ABC, abstractmethod
from typing import Optional

import structlog

from finvue.models.audit import (
    SYSTEM_USERNAME,
    ActivityLog,
    ActivityType,
)


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


class ActivitySinkInterface(ABC):
    """Where activity entries end up (the record store)."""

    @abstractmethod
    def append_log(self, entry: ActivityLog) -> None:
        """Prepend an entry to the activity log, keeping it bounded."""
        pass


class ActivityLogger:
    """
    Central activity logging service.

    Logs entries both to:
    1. Structured local log (for debugging)
    2. The ledger's activity log (for the admin trail)
    """

    def __init__(
        self,
        sink: Optional[ActivitySinkInterface] = None,
    ):
        """
        Initialize activity logger.

        Args:
            sink: Receiver of the entries.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger()

    def attach(self, sink: ActivitySinkInterface) -> None:
        self._sink = sink

    def log(self, entry: ActivityLog) -> bool:
        """
        Log an activity entry.

        Always logs locally. Hands the entry to the sink if there is one.

        Returns True if the sink accepted it (or no sink is configured).
        """
        self._logger.info("activity_logged", **entry.to_log_dict())

        if self._sink is None:
            return True

        try:
            self._sink.append_log(entry)
            return True
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "activity_sink_failed",
                error=str(e),
                activity_id=entry.id,
            )
            return False

    def record(
        self,
        action: str,
        details: str,
        activity_type: ActivityType,
        username: Optional[str] = None,
    ) -> ActivityLog:
        """Build an entry from parts, log it and return it."""
        entry = ActivityLog(
            username=username or SYSTEM_USERNAME,
            action=action,
            details=details,
            type=activity_type,
        )
        self.log(entry)
        return entry

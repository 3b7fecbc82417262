"""
Notice Logger

DESIGN DECISION: Store and input failures are surfaced, never raised to the
user interface. The notice logger:
- Logs every notice locally as structured JSON
- Keeps the most recent notices in memory so the UI can show them
- Never raises (a failed notice must not take the app down)
"""

from collections import deque
from typing import Optional

import structlog

from src.config import get_finance_settings
from src.models.notice import Notice, NoticeBuilder, NoticeSeverity


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


class NoticeLogger:
    """
    Central notice service.

    Notices go to:
    1. Structured local log (for debugging)
    2. An in-memory ring of recent notices (for the user)
    """

    def __init__(self, limit: Optional[int] = None):
        """
        Args:
            limit: How many notices to keep. Defaults to the configured
                   `recent_notices_limit`.
        """
        if limit is None:
            limit = get_finance_settings().recent_notices_limit
        self._recent: deque[Notice] = deque(maxlen=limit)
        self._logger = structlog.get_logger()

    def log(self, notice: Notice) -> Notice:
        """Log a notice locally and remember it."""
        log_dict = notice.to_log_dict()

        if notice.severity == NoticeSeverity.ERROR:
            self._logger.error("notice", **log_dict)
        elif notice.severity == NoticeSeverity.WARNING:
            self._logger.warning("notice", **log_dict)
        elif notice.severity == NoticeSeverity.DEBUG:
            self._logger.debug("notice", **log_dict)
        else:
            self._logger.info("notice", **log_dict)

        self._recent.append(notice)
        return notice

    def recent(self, include_debug: bool = False) -> list[Notice]:
        """Recent notices, newest first."""
        notices = reversed(self._recent)
        if include_debug:
            return list(notices)
        return [n for n in notices if n.severity != NoticeSeverity.DEBUG]

    def clear(self) -> None:
        self._recent.clear()

    def __len__(self) -> int:
        return len(self._recent)

    # Shortcuts ----------------------------------------------------------------

    def connection_failed(self, error_message: str) -> Notice:
        return self.log(NoticeBuilder.connection_failed(error_message))

    def read_failed(self, operation: str, error_message: str) -> Notice:
        return self.log(NoticeBuilder.read_failed(operation, error_message))

    def write_failed(
        self,
        operation: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> Notice:
        return self.log(NoticeBuilder.write_failed(operation, error_message, entity_id))

    def not_found(self, operation: str, entity_id: str) -> Notice:
        return self.log(NoticeBuilder.not_found(operation, entity_id))

    def input_rejected(self, operation: str, issues: list[dict]) -> Notice:
        return self.log(NoticeBuilder.input_rejected(operation, issues))

    def snapshot_refreshed(self, transaction_count: int, fixed_expense_count: int) -> Notice:
        return self.log(NoticeBuilder.snapshot_refreshed(transaction_count, fixed_expense_count))

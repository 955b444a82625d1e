"""Error sinks for records rejected during delivery."""

import logging

from batch_sink.models.records import Record

logger = logging.getLogger(__name__)


class CollectingErrorSink:
    """Keep rejected records in memory for the caller to inspect."""

    def __init__(self) -> None:
        self.errors: list[tuple[Exception, Record]] = []

    def report_error(self, error: Exception, record: Record) -> None:
        self.errors.append((error, record))

    def clear(self) -> None:
        self.errors.clear()


class LoggingErrorSink:
    """Log rejected records."""

    def report_error(self, error: Exception, record: Record) -> None:
        logger.error(
            "Error record: %s",
            error,
            extra={"source_id": record.header.source_id},
        )

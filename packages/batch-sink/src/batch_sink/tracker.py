"""Offset tracking for a resumable pipeline run."""

import logging
from datetime import datetime
from typing import Self

from batch_sink.errors import ErrorKind, SinkError
from batch_sink.models.offsets import END_OF_STREAM, SourceOffset
from batch_sink.protocols import OffsetStore

logger = logging.getLogger(__name__)


class OffsetTracker:
    """In-memory cursor over a source, backed by an offset store.

    A new position is buffered by `set_offset` and only becomes visible
    through `get_offset` once `commit_offset` has run. Commit only after the
    batch that produced the position has been delivered: this gives
    at-least-once delivery across restarts.

    One tracker serves one pipeline run and must be driven from a single
    task.
    """

    __slots__ = (
        "_current",
        "_finished",
        "_last_batch_time",
        "_pending",
        "_pipeline_name",
        "_store",
    )

    def __init__(
        self,
        pipeline_name: str,
        store: OffsetStore,
        current: SourceOffset | None = None,
    ) -> None:
        self._pipeline_name = pipeline_name
        self._store = store
        self._current = current or SourceOffset()
        self._pending: str | None = None
        self._finished = False
        self._last_batch_time: datetime | None = None

    @classmethod
    async def create(cls, pipeline_name: str, store: OffsetStore) -> Self:
        """Load the last persisted offset for the pipeline.

        A missing or unreadable offset starts the pipeline from scratch.
        """
        try:
            current = await store.get_offset(pipeline_name)
        except Exception:
            logger.warning(
                "Could not read stored offset, starting from an empty offset",
                extra={"pipeline_name": pipeline_name},
                exc_info=True,
            )
            current = SourceOffset()
        return cls(pipeline_name, store, current)

    @property
    def pipeline_name(self) -> str:
        return self._pipeline_name

    def set_offset(self, new_offset: str) -> None:
        """Buffer a new position, replacing any uncommitted one."""
        self._pending = new_offset

    async def commit_offset(self) -> None:
        """Make the buffered position current and persist it.

        The buffer is cleared even when persisting fails. Calling this again
        with nothing buffered re-persists the current offset.

        Raises:
            SinkError: The offset store could not save the offset. The
                error is retryable.
        """
        if self._pending is not None:
            self._current = SourceOffset(offset=self._pending)
            self._finished = self._current.offset == END_OF_STREAM
            self._pending = None

        try:
            await self._store.save_offset(self._pipeline_name, self._current)
        except Exception as e:
            msg = f"Failed to persist offset for pipeline '{self._pipeline_name}': {e}"
            raise SinkError(msg, kind=ErrorKind.PERSISTENCE, source=e) from e

        logger.debug(
            "Committed offset",
            extra={"pipeline_name": self._pipeline_name, "offset": self._current.offset},
        )

    def get_offset(self) -> str:
        """Return the last committed offset."""
        return self._current.offset

    def is_finished(self) -> bool:
        """Whether the source reported end of stream in a committed offset."""
        return self._finished

    def get_last_batch_time(self) -> datetime | None:
        return self._last_batch_time

    def set_last_batch_time(self, when: datetime) -> None:
        self._last_batch_time = when

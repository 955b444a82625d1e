"""Core protocols for the collaborators of a delivery stage."""

from typing import BinaryIO, Protocol, runtime_checkable

from batch_sink.models.offsets import SourceBatch, SourceOffset
from batch_sink.models.records import Record
from batch_sink.models.results import UploadOutput, UploadRequest


@runtime_checkable
class OffsetStore(Protocol):
    """Durable storage for one offset per pipeline."""

    async def get_offset(self, pipeline_name: str) -> SourceOffset:
        """Return the last saved offset, or an empty one if none was saved."""
        ...

    async def save_offset(self, pipeline_name: str, offset: SourceOffset) -> None:
        """Persist the offset, replacing any previous value."""
        ...


@runtime_checkable
class RecordWriter(Protocol):
    """A generator bound to one output stream."""

    def write_record(self, record: Record) -> None:
        """Encode one record into the stream.

        A record that cannot be encoded raises without writing partial output.
        """
        ...

    def flush(self) -> None: ...

    def close(self) -> None:
        """Finish the output. The underlying stream stays open."""
        ...


@runtime_checkable
class RecordEncoder(Protocol):
    """Factory of record writers for one data format."""

    def get_generator(self, stream: BinaryIO) -> RecordWriter:
        """Bind a new writer to the stream."""
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """Remote blob store that accepts whole objects."""

    async def upload(self, request: UploadRequest) -> UploadOutput:
        """Store the request body under its bucket and key."""
        ...


@runtime_checkable
class ErrorSink(Protocol):
    """Receiver of records that could not be processed.

    Implementations must not raise.
    """

    def report_error(self, error: Exception, record: Record) -> None: ...


@runtime_checkable
class BatchSource(Protocol):
    """Source that reads batches starting at an offset."""

    async def read_batch(self, last_offset: str, max_batch_size: int) -> SourceBatch:
        """Read up to `max_batch_size` records following `last_offset`.

        An empty `next_offset` in the result means the source is exhausted.
        """
        ...

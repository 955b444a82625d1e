"""Shared fakes for delivery and offset tests.

No infrastructure required - stores and clients are in-memory.
"""

import pytest

from batch_sink.models.offsets import SourceOffset
from batch_sink.models.records import Record, RecordHeader
from batch_sink.models.results import UploadOutput, UploadRequest
from batch_sink.sinks import CollectingErrorSink
from batch_sink.stores import MemoryOffsetStore


class FakeObjectStore:
    """Object store recording every upload request."""

    def __init__(self, error: Exception | None = None) -> None:
        self.requests: list[UploadRequest] = []
        self.error = error

    async def upload(self, request: UploadRequest) -> UploadOutput:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        return UploadOutput(location=f"s3://{request.bucket}/{request.key}", etag='"etag"')


class FlakyOffsetStore(MemoryOffsetStore):
    """Memory store whose reads and writes fail a set number of times."""

    def __init__(self, read_failures: int = 0, write_failures: int = 0) -> None:
        super().__init__()
        self.read_failures = read_failures
        self.write_failures = write_failures

    async def get_offset(self, pipeline_name: str) -> SourceOffset:
        if self.read_failures:
            self.read_failures -= 1
            raise OSError("offset store unavailable")
        return await super().get_offset(pipeline_name)

    async def save_offset(self, pipeline_name: str, offset: SourceOffset) -> None:
        if self.write_failures:
            self.write_failures -= 1
            raise OSError("offset store unavailable")
        await super().save_offset(pipeline_name, offset)


def make_records(*values: object) -> list[Record]:
    return [
        Record(value=value, header=RecordHeader(source_id=f"test::{i}"))
        for i, value in enumerate(values)
    ]


@pytest.fixture
def offset_store():
    return MemoryOffsetStore()


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def error_sink():
    return CollectingErrorSink()

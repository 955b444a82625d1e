"""Offset tracking and batched object store delivery for data pipelines."""

from batch_sink.errors import ErrorKind, SinkError
from batch_sink.file_helper import FileHelper
from batch_sink.naming import ObjectNamer
from batch_sink.protocols import (
    BatchSource,
    ErrorSink,
    ObjectStore,
    OffsetStore,
    RecordEncoder,
    RecordWriter,
)
from batch_sink.runner import PipelineRunner
from batch_sink.secure_upload import SecureUploadAdapter
from batch_sink.sinks import CollectingErrorSink, LoggingErrorSink
from batch_sink.stores import FileOffsetStore, MemoryOffsetStore
from batch_sink.target import ObjectStoreTarget
from batch_sink.tracker import OffsetTracker

__all__ = [
    "BatchSource",
    "CollectingErrorSink",
    "ErrorKind",
    "ErrorSink",
    "FileHelper",
    "FileOffsetStore",
    "LoggingErrorSink",
    "MemoryOffsetStore",
    "ObjectNamer",
    "ObjectStore",
    "ObjectStoreTarget",
    "OffsetStore",
    "OffsetTracker",
    "PipelineRunner",
    "RecordEncoder",
    "RecordWriter",
    "SecureUploadAdapter",
    "SinkError",
]

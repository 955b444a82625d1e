"""JSON record encoder."""

import json
from typing import BinaryIO

from batch_sink.models.params import JsonMode
from batch_sink.models.records import Record


class JsonRecordWriter:
    """Write record values as JSON."""

    __slots__ = ("_count", "_mode", "_stream")

    def __init__(self, stream: BinaryIO, mode: JsonMode) -> None:
        self._stream = stream
        self._mode = mode
        self._count = 0

    def write_record(self, record: Record) -> None:
        # Serialize first so a bad record leaves nothing in the stream
        data = json.dumps(record.value, allow_nan=False, separators=(",", ":")).encode()

        if self._mode is JsonMode.ARRAY_OBJECTS:
            self._stream.write(b"," if self._count else b"[")
            self._stream.write(data)
        else:
            self._stream.write(data + b"\n")
        self._count += 1

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        if self._mode is JsonMode.ARRAY_OBJECTS:
            self._stream.write(b"]" if self._count else b"[]")
        self._stream.flush()


class JsonRecordEncoder:
    """Encoder for JSON output."""

    def __init__(self, mode: JsonMode = JsonMode.MULTIPLE_OBJECTS) -> None:
        self.mode = mode

    def get_generator(self, stream: BinaryIO) -> JsonRecordWriter:
        return JsonRecordWriter(stream, self.mode)

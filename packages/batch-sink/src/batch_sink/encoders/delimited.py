"""Delimited (CSV) record encoder."""

import csv
import io
import json
from collections.abc import Mapping
from typing import BinaryIO

from batch_sink.models.records import Record


class DelimitedRecordWriter:
    """Write mapping records as CSV rows.

    The column order is taken from the first record written, which must not
    be empty. Later records may omit columns but may not add new ones.
    """

    __slots__ = ("_delimiter", "_fieldnames", "_header", "_stream")

    def __init__(self, stream: BinaryIO, *, header: bool, delimiter: str) -> None:
        self._stream = stream
        self._header = header
        self._delimiter = delimiter
        self._fieldnames: list[str] | None = None

    def write_record(self, record: Record) -> None:
        if not isinstance(record.value, Mapping):
            msg = f"Delimited output requires a mapping record, got {type(record.value).__name__}"
            raise TypeError(msg)

        if self._fieldnames is None:
            if not record.value:
                msg = "Cannot take columns from an empty record"
                raise ValueError(msg)
            fieldnames = list(record.value.keys())
        else:
            fieldnames = self._fieldnames
        unknown = set(record.value) - set(fieldnames)
        if unknown:
            msg = f"Record has columns not in header: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        text = io.StringIO()
        writer = csv.DictWriter(text, fieldnames=fieldnames, delimiter=self._delimiter)
        if self._fieldnames is None and self._header:
            writer.writeheader()
        writer.writerow({k: _cell(v) for k, v in record.value.items()})

        self._stream.write(text.getvalue().encode("utf-8"))
        self._fieldnames = fieldnames

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        self._stream.flush()


def _cell(value: object) -> object:
    """Render nested values as JSON-like text, scalars as-is."""
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"))
    return value


class DelimitedRecordEncoder:
    """Encoder for delimited output."""

    def __init__(self, *, header: bool = True, delimiter: str = ",") -> None:
        self.header = header
        self.delimiter = delimiter

    def get_generator(self, stream: BinaryIO) -> DelimitedRecordWriter:
        return DelimitedRecordWriter(stream, header=self.header, delimiter=self.delimiter)

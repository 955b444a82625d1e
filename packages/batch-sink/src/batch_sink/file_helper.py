"""Batch delivery to an object store.

`FileHelper.handle` turns one batch of records into one object:

1. encode every record into an in-memory buffer, gzip-compressed if configured,
   sending records that fail to encode to the error sink;
2. flush and close the writer, logging failures without aborting;
3. name the object and upload it with the configured encryption.

Only the upload can fail the batch. An empty batch is still uploaded, so every
call marks a batch boundary the caller can commit.
"""

import io
import logging
from collections.abc import Iterator, Mapping, Sequence
from datetime import datetime
from typing import Any, BinaryIO, Self

from pydantic import ValidationError

from batch_sink.compression import open_compressor
from batch_sink.encoders import get_encoder
from batch_sink.errors import ErrorKind, SinkError
from batch_sink.models.params import DataFormat, TargetConfig
from batch_sink.models.records import Record
from batch_sink.models.results import DeliveryResult
from batch_sink.naming import ObjectNamer
from batch_sink.protocols import ErrorSink, ObjectStore, RecordEncoder, RecordWriter
from batch_sink.secure_upload import SecureUploadAdapter

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    DataFormat.JSON: "application/json",
    DataFormat.DELIMITED: "text/csv",
}


class FileHelper:
    """Encode, compress, name, and upload batches for one destination stage.

    The only mutable state is the namer's counter. Calls to `handle` must not
    overlap; concurrent deliveries need one helper each.
    """

    __slots__ = ("_config", "_encoder", "_error_sink", "_namer", "_uploader")

    def __init__(
        self,
        config: TargetConfig,
        store: ObjectStore,
        error_sink: ErrorSink,
        encoder: RecordEncoder | None = None,
    ) -> None:
        self._config = config
        self._encoder = encoder or get_encoder(config)
        self._error_sink = error_sink
        self._namer = ObjectNamer(config.file_name_suffix, compress=config.compress)
        self._uploader = SecureUploadAdapter(store, config.sse)

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        store: ObjectStore,
        error_sink: ErrorSink,
        encoder: RecordEncoder | None = None,
    ) -> Self:
        """Validate raw stage settings and build a helper.

        Raises:
            SinkError: The settings are invalid, e.g. more than one encryption
                mode is configured or a mode is missing its key.
        """
        try:
            target_config = TargetConfig.model_validate(config)
        except ValidationError as e:
            msg = f"Invalid target configuration: {e}"
            raise SinkError(msg, kind=ErrorKind.CONFIGURATION, source=e) from e
        return cls(target_config, store, error_sink, encoder)

    @property
    def config(self) -> TargetConfig:
        return self._config

    async def handle(
        self,
        records: Sequence[Record],
        bucket: str,
        key_prefix: str,
        now: datetime | None = None,
    ) -> DeliveryResult:
        """Deliver one batch as a single object.

        Raises:
            SinkError: The upload failed. Nothing from this batch was stored.
        """
        buffer = io.BytesIO()
        stream = open_compressor(buffer, compress=self._config.compress)
        writer = self._encoder.get_generator(stream)

        written = 0
        rejected = 0
        for record, error in _encode(writer, records):
            if error is None:
                written += 1
                continue
            rejected += 1
            logger.error(
                "Failed to encode record: %s",
                error,
                extra={"source_id": record.header.source_id},
            )
            self._error_sink.report_error(
                SinkError(f"Failed to encode record: {error}", kind=ErrorKind.ENCODE, source=error),
                record,
            )

        self._flush_and_close(writer, stream, buffer)

        key = self._namer.next_name(key_prefix, now)
        body = buffer.getvalue()
        content_type = _CONTENT_TYPES[self._config.data_format]
        if self._config.compress:
            content_type = "application/gzip"

        try:
            output = await self._uploader.upload(bucket, key, body, content_type)
        except Exception:
            logger.error(
                "Failed to upload batch",
                extra={"bucket": bucket, "object_key": key, "records": written},
            )
            raise

        logger.info(
            "Delivered batch",
            extra={
                "bucket": bucket,
                "object_key": key,
                "bytes_written": len(body),
                "records": written,
                "error_records": rejected,
            },
        )
        return DeliveryResult(
            object_key=key,
            bytes_written=len(body),
            records_written=written,
            error_records=rejected,
            upload=output,
        )

    @staticmethod
    def _flush_and_close(writer: RecordWriter, stream: BinaryIO, buffer: BinaryIO) -> None:
        try:
            writer.flush()
        except Exception:
            logger.warning("Error flushing record writer", exc_info=True)

        try:
            writer.close()
        except Exception:
            logger.warning("Error closing record writer", exc_info=True)

        if stream is not buffer:
            try:
                stream.close()
            except Exception:
                logger.warning("Error closing compression stream", exc_info=True)


def _encode(
    writer: RecordWriter, records: Sequence[Record]
) -> Iterator[tuple[Record, Exception | None]]:
    """Yield each record with the error its encoding raised, if any."""
    for record in records:
        try:
            writer.write_record(record)
        except Exception as e:  # noqa: BLE001
            yield record, e
        else:
            yield record, None

"""
Unit tests for FileHelper batch delivery.

Test Coverage:
    - Encoding a batch into one object in order
    - Per-record encode failures routed to the error sink
    - Flush/close failures tolerated
    - Object naming across consecutive batches
    - Gzip compression
    - Encryption arguments on the upload request
    - Upload failures propagated
    - Configuration validation at construction

No infrastructure required - the object store is faked.
"""

import base64
import gzip
import hashlib
import json
from datetime import UTC, datetime
from unittest.mock import Mock, patch

import pytest

from batch_sink.encoders import JsonRecordEncoder
from batch_sink.errors import ErrorKind, SinkError
from batch_sink.file_helper import FileHelper
from batch_sink.models.params import DataFormat, KmsEncryption, TargetConfig
from conftest import FakeObjectStore, make_records

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
MILLIS = int(NOW.timestamp() * 1000)
KEY = base64.b64encode(b"k" * 32).decode()
KEY_MD5 = base64.b64encode(hashlib.md5(b"k" * 32).digest()).decode()


def decode_lines(body: bytes) -> list[object]:
    return [json.loads(line) for line in body.decode().splitlines()]


class TestHandle:
    """Delivering a batch as one object."""

    @pytest.mark.asyncio
    async def test_example_scenario(self, object_store, error_sink):
        """Records A, B, C land in `pipeline1/<time>-1`, the next batch in `-2`."""
        helper = FileHelper(TargetConfig(bucket="bucket"), object_store, error_sink)

        result = await helper.handle(make_records("A", "B", "C"), "bucket", "pipeline1/", NOW)
        second = await helper.handle(make_records("D"), "bucket", "pipeline1/", NOW)

        assert result.object_key == f"pipeline1/{MILLIS}-1"
        assert second.object_key == f"pipeline1/{MILLIS}-2"
        assert len(object_store.requests) == 2

        request = object_store.requests[0]
        assert request.bucket == "bucket"
        assert request.key == result.object_key
        assert decode_lines(request.body) == ["A", "B", "C"]
        assert request.content_type == "application/json"
        assert request.encryption_args == {}
        assert result.bytes_written == len(request.body)
        assert result.records_written == 3
        assert result.error_records == 0
        assert result.upload is not None

    @pytest.mark.asyncio
    async def test_distinct_names_without_fixed_time(self, object_store, error_sink):
        helper = FileHelper(TargetConfig(bucket="b"), object_store, error_sink)

        first = await helper.handle(make_records(1), "b", "p/")
        second = await helper.handle(make_records(2), "b", "p/")

        assert first.object_key != second.object_key

    @pytest.mark.asyncio
    async def test_empty_batch_is_uploaded(self, object_store, error_sink):
        """An empty batch still produces an object."""
        helper = FileHelper(TargetConfig(bucket="b"), object_store, error_sink)

        result = await helper.handle([], "b", "p/", NOW)

        assert len(object_store.requests) == 1
        assert object_store.requests[0].body == b""
        assert result.bytes_written == 0

    @pytest.mark.asyncio
    async def test_empty_batch_compressed(self, object_store, error_sink):
        helper = FileHelper(TargetConfig(bucket="b", compress=True), object_store, error_sink)

        await helper.handle([], "b", "p/", NOW)

        assert gzip.decompress(object_store.requests[0].body) == b""

    @pytest.mark.asyncio
    async def test_suffix_in_name(self, object_store, error_sink):
        config = TargetConfig(bucket="b", file_name_suffix="json")
        helper = FileHelper(config, object_store, error_sink)

        result = await helper.handle(make_records(1), "b", "p/", NOW)

        assert result.object_key == f"p/{MILLIS}-1.json"


class TestRecordErrors:
    """Per-record encode failures."""

    @pytest.mark.asyncio
    async def test_bad_record_is_isolated(self, object_store, error_sink):
        """The failing record goes to the sink and the others are delivered."""
        helper = FileHelper(TargetConfig(bucket="b"), object_store, error_sink)
        records = make_records("A", float("nan"), "C")

        result = await helper.handle(records, "b", "p/", NOW)

        assert len(error_sink.errors) == 1
        error, record = error_sink.errors[0]
        assert record is records[1]
        assert isinstance(error, SinkError)
        assert error.kind == ErrorKind.ENCODE
        assert decode_lines(object_store.requests[0].body) == ["A", "C"]
        assert result.records_written == 2
        assert result.error_records == 1

    @pytest.mark.asyncio
    async def test_flush_and_close_errors_do_not_abort(self, object_store, error_sink):
        """Writer flush and close failures are logged and the batch is uploaded."""
        writer = Mock()
        writer.flush.side_effect = OSError("flush failed")
        writer.close.side_effect = OSError("close failed")
        encoder = Mock()
        encoder.get_generator.return_value = writer
        helper = FileHelper(TargetConfig(bucket="b"), object_store, error_sink, encoder=encoder)

        result = await helper.handle(make_records(1, 2), "b", "p/", NOW)

        assert len(object_store.requests) == 1
        assert writer.write_record.call_count == 2
        assert result.records_written == 2
        assert error_sink.errors == []


class TestCompression:
    @pytest.mark.asyncio
    async def test_compressed_matches_uncompressed(self, error_sink):
        """Compressed objects carry `.gz` and decompress to the plain content."""
        plain_store, gzip_store = FakeObjectStore(), FakeObjectStore()
        records = make_records({"a": 1}, {"b": 2})

        plain = FileHelper(TargetConfig(bucket="b"), plain_store, error_sink)
        compressed = FileHelper(TargetConfig(bucket="b", compress=True), gzip_store, error_sink)
        await plain.handle(records, "b", "p/", NOW)
        result = await compressed.handle(records, "b", "p/", NOW)

        assert result.object_key == f"p/{MILLIS}-1.gz"
        request = gzip_store.requests[0]
        assert request.content_type == "application/gzip"
        assert gzip.decompress(request.body) == plain_store.requests[0].body

    @pytest.mark.asyncio
    async def test_compressor_close_error_does_not_abort(self, object_store, error_sink):
        """A failing gzip stream close is logged and the batch is still uploaded."""
        stream = Mock()
        stream.close.side_effect = OSError("close failed")
        writer = Mock()
        encoder = Mock()
        encoder.get_generator.return_value = writer
        config = TargetConfig(bucket="b", compress=True)
        helper = FileHelper(config, object_store, error_sink, encoder=encoder)

        with patch("batch_sink.file_helper.open_compressor", return_value=stream):
            result = await helper.handle(make_records(1, 2), "b", "p/", NOW)

        encoder.get_generator.assert_called_once_with(stream)
        stream.close.assert_called_once()
        assert len(object_store.requests) == 1
        assert result.object_key == f"p/{MILLIS}-1.gz"
        assert result.records_written == 2


class TestEncryption:
    @pytest.mark.asyncio
    async def test_customer_key(self, object_store, error_sink):
        """Customer key mode sends the key and digest and no KMS key."""
        helper = FileHelper.from_config(
            {
                "bucket": "b",
                "sse": {
                    "use_sse": True,
                    "encryption": "CUSTOMER",
                    "customer_key": KEY,
                    "customer_key_md5": KEY_MD5,
                },
            },
            object_store,
            error_sink,
        )

        await helper.handle(make_records(1), "b", "p/", NOW)

        args = object_store.requests[0].encryption_args
        assert args["SSECustomerKey"] == KEY
        assert args["SSECustomerKeyMD5"] == KEY_MD5
        assert args["SSECustomerAlgorithm"] == "AES256"
        assert "SSEKMSKeyId" not in args
        assert "ServerSideEncryption" not in args

    @pytest.mark.asyncio
    async def test_kms(self, object_store, error_sink):
        config = TargetConfig(bucket="b", sse=KmsEncryption(kms_key_id="key-1"))
        helper = FileHelper(config, object_store, error_sink)

        await helper.handle(make_records(1), "b", "p/", NOW)

        assert object_store.requests[0].encryption_args == {
            "ServerSideEncryption": "aws:kms",
            "SSEKMSKeyId": "key-1",
        }

    def test_conflicting_modes_fail_at_startup(self, object_store, error_sink):
        with pytest.raises(SinkError) as exc_info:
            FileHelper.from_config(
                {
                    "bucket": "b",
                    "sse": {
                        "use_sse": True,
                        "encryption": "KMS",
                        "kms_key_id": "key-1",
                        "customer_key": KEY,
                        "customer_key_md5": KEY_MD5,
                    },
                },
                object_store,
                error_sink,
            )

        assert exc_info.value.kind == ErrorKind.CONFIGURATION
        assert exc_info.value.retryable is False

    def test_tagged_mode_with_foreign_fields_fails_at_startup(self, object_store, error_sink):
        """A KMS config carrying a customer key is refused, not silently trimmed."""
        with pytest.raises(SinkError) as exc_info:
            FileHelper.from_config(
                {
                    "bucket": "b",
                    "sse": {
                        "mode": "kms",
                        "kms_key_id": "key-1",
                        "customer_key": KEY,
                        "customer_key_md5": KEY_MD5,
                    },
                },
                object_store,
                error_sink,
            )

        assert exc_info.value.kind == ErrorKind.CONFIGURATION


class TestUploadErrors:
    @pytest.mark.asyncio
    async def test_upload_error_propagates(self, error_sink):
        """Upload failures reach the caller unchanged."""
        failure = SinkError("boom", kind=ErrorKind.UPLOAD)
        helper = FileHelper(TargetConfig(bucket="b"), FakeObjectStore(error=failure), error_sink)

        with pytest.raises(SinkError) as exc_info:
            await helper.handle(make_records(1), "b", "p/", NOW)

        assert exc_info.value is failure


class TestDataFormats:
    @pytest.mark.asyncio
    async def test_delimited(self, object_store, error_sink):
        """Delimited config writes CSV and rejects non-mapping records."""
        config = TargetConfig(bucket="b", data_format=DataFormat.DELIMITED, file_name_suffix="csv")
        helper = FileHelper(config, object_store, error_sink)

        result = await helper.handle(make_records({"id": 1}, "oops", {"id": 2}), "b", "p/", NOW)

        request = object_store.requests[0]
        assert result.object_key == f"p/{MILLIS}-1.csv"
        assert request.content_type == "text/csv"
        assert request.body.decode().splitlines() == ["id", "1", "2"]
        assert len(error_sink.errors) == 1

    @pytest.mark.asyncio
    async def test_explicit_encoder_overrides_config(self, object_store, error_sink):
        config = TargetConfig(bucket="b", data_format=DataFormat.DELIMITED)
        helper = FileHelper(config, object_store, error_sink, encoder=JsonRecordEncoder())

        await helper.handle(make_records([1]), "b", "p/", NOW)

        assert decode_lines(object_store.requests[0].body) == [[1]]

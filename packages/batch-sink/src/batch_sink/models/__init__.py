"""Data and configuration types shared by trackers, encoders, and stores."""

from batch_sink.models.offsets import END_OF_STREAM, SourceBatch, SourceOffset
from batch_sink.models.params import (
    CustomerKeyEncryption,
    DataFormat,
    Encryption,
    EncryptionMode,
    JsonMode,
    KmsEncryption,
    NoEncryption,
    S3ManagedEncryption,
    TargetConfig,
    customer_key_digest,
)
from batch_sink.models.records import JsonValue, Record, RecordHeader
from batch_sink.models.results import DeliveryResult, UploadOutput, UploadRequest

__all__ = [
    # Offsets (runtime state)
    "END_OF_STREAM",
    "SourceBatch",
    "SourceOffset",
    # Params (configuration)
    "CustomerKeyEncryption",
    "DataFormat",
    "Encryption",
    "EncryptionMode",
    "JsonMode",
    "KmsEncryption",
    "NoEncryption",
    "S3ManagedEncryption",
    "TargetConfig",
    "customer_key_digest",
    # Data types
    "JsonValue",
    "Record",
    "RecordHeader",
    # Results
    "DeliveryResult",
    "UploadOutput",
    "UploadRequest",
]

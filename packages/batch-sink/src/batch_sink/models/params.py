"""Configuration types for a delivery stage.

Params are read once when a stage starts and shared read-only by every
batch it delivers. Validation failures surface before the first batch.
"""

import base64
import binascii
import hashlib
from enum import StrEnum
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, Field, field_validator, model_validator

AES256 = "AES256"
AWS_KMS = "aws:kms"


class EncryptionMode(StrEnum):
    """Encryption modes accepted in the flat `encryption` setting."""

    S3 = "S3"
    """Keys managed by the object store."""

    KMS = "KMS"
    """Keys managed by a key management service."""

    CUSTOMER = "CUSTOMER"
    """Key supplied with every request by the customer."""


class DataFormat(StrEnum):
    """Record encodings a stage can write."""

    JSON = "json"
    DELIMITED = "delimited"


class JsonMode(StrEnum):
    """Layout of JSON output."""

    MULTIPLE_OBJECTS = "multiple_objects"
    """One JSON document per line."""

    ARRAY_OBJECTS = "array_objects"
    """A single JSON array holding every record."""


def customer_key_digest(customer_key: str) -> str:
    """Return the base64 MD5 digest of a base64 encoded customer key."""
    raw = base64.b64decode(customer_key, validate=True)
    return base64.b64encode(hashlib.md5(raw).digest()).decode("ascii")  # noqa: S324


class NoEncryption(BaseModel, frozen=True, extra="forbid"):
    """Objects are stored with the bucket's default settings."""

    mode: Literal["none"] = "none"

    def upload_args(self) -> dict[str, str]:
        return {}


class S3ManagedEncryption(BaseModel, frozen=True, extra="forbid"):
    """Server-side encryption with store-managed keys."""

    mode: Literal["s3"] = "s3"

    def upload_args(self) -> dict[str, str]:
        return {"ServerSideEncryption": AES256}


class KmsEncryption(BaseModel, frozen=True, extra="forbid"):
    """Server-side encryption with a KMS key."""

    mode: Literal["kms"] = "kms"

    kms_key_id: str = Field(min_length=1)
    """KMS key identifier or ARN."""

    def upload_args(self) -> dict[str, str]:
        return {"ServerSideEncryption": AWS_KMS, "SSEKMSKeyId": self.kms_key_id}


class CustomerKeyEncryption(BaseModel, frozen=True, extra="forbid"):
    """Server-side encryption with a customer-provided key."""

    mode: Literal["customer"] = "customer"

    customer_key: str = Field(min_length=1, repr=False)
    """Base64 encoded 256-bit key."""

    customer_key_md5: str = Field(min_length=1)
    """Base64 encoded MD5 digest of the key. Computed from the key when omitted."""

    @model_validator(mode="before")
    @classmethod
    def _fill_digest(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("customer_key") and not data.get("customer_key_md5"):
            try:
                digest = customer_key_digest(data["customer_key"])
            except binascii.Error:
                # Reported by the customer_key validator
                return data
            return {**data, "customer_key_md5": digest}
        return data

    @model_validator(mode="after")
    def _check_digest(self) -> Self:
        if self.customer_key_md5 != customer_key_digest(self.customer_key):
            msg = "customer_key_md5 does not match customer_key"
            raise ValueError(msg)
        return self

    @field_validator("customer_key")
    @classmethod
    def _check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except binascii.Error as e:
            msg = "customer_key must be base64 encoded"
            raise ValueError(msg) from e
        return value

    def upload_args(self) -> dict[str, str]:
        return {
            "SSECustomerAlgorithm": AES256,
            "SSECustomerKey": self.customer_key,
            "SSECustomerKeyMD5": self.customer_key_md5,
        }


Encryption = Annotated[
    NoEncryption | S3ManagedEncryption | KmsEncryption | CustomerKeyEncryption,
    Field(discriminator="mode"),
]


def _encryption_from_flags(flags: dict[str, Any]) -> dict[str, Any]:
    """Convert the flat `use_sse` settings into one tagged encryption variant."""
    if not flags.get("use_sse"):
        return {"mode": "none"}

    kms_key_id = flags.get("kms_key_id") or ""
    customer_key = flags.get("customer_key") or ""
    customer_key_md5 = flags.get("customer_key_md5") or ""

    populated = [
        name
        for name, value in (
            ("kms_key_id", kms_key_id),
            ("customer_key", customer_key),
            ("customer_key_md5", customer_key_md5),
        )
        if value
    ]

    try:
        mode = EncryptionMode(flags.get("encryption"))
    except ValueError as e:
        msg = f"Unknown encryption mode: {flags.get('encryption')!r}"
        raise ValueError(msg) from e

    match mode:
        case EncryptionMode.S3:
            if populated:
                msg = f"S3 managed encryption does not take {', '.join(populated)}"
                raise ValueError(msg)
            return {"mode": "s3"}
        case EncryptionMode.KMS:
            if populated != ["kms_key_id"]:
                msg = "KMS encryption requires kms_key_id and no customer key"
                raise ValueError(msg)
            return {"mode": "kms", "kms_key_id": kms_key_id}
        case EncryptionMode.CUSTOMER:
            if populated not in (["customer_key"], ["customer_key", "customer_key_md5"]):
                msg = "Customer key encryption requires customer_key and no KMS key"
                raise ValueError(msg)
            return {
                "mode": "customer",
                "customer_key": customer_key,
                "customer_key_md5": customer_key_md5,
            }


class TargetConfig(BaseModel, frozen=True):
    """Parameters of an object store delivery stage."""

    bucket: str = Field(min_length=1)
    """Destination bucket."""

    common_prefix: str = ""
    """Key prefix shared by every object the stage writes."""

    file_name_prefix: str = "sdc"
    """Prefix of each object's file name."""

    file_name_suffix: str = ""
    """Extension appended to object names, without the leading dot."""

    compress: bool = False
    """Gzip objects before upload."""

    data_format: DataFormat = DataFormat.JSON
    """Record encoding."""

    json_mode: JsonMode = JsonMode.MULTIPLE_OBJECTS
    """Layout of JSON output."""

    csv_header: bool = True
    """Write a header row for delimited output."""

    sse: Encryption = Field(default_factory=NoEncryption)
    """Server-side encryption applied to every upload."""

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_sse(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("sse"), dict) and "use_sse" in data["sse"]:
            return {**data, "sse": _encryption_from_flags(data["sse"])}
        return data

    @field_validator("file_name_suffix")
    @classmethod
    def _check_suffix(cls, value: str) -> str:
        value = value.removeprefix(".")
        if "/" in value:
            msg = "file_name_suffix must not contain '/'"
            raise ValueError(msg)
        return value

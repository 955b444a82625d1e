"""Upload requests and delivery outcomes."""

from pydantic import BaseModel, Field


class UploadRequest(BaseModel, frozen=True):
    """A finished batch ready to be stored as one object."""

    bucket: str
    """Destination bucket."""

    key: str
    """Object key."""

    body: bytes
    """Encoded (and possibly compressed) batch content."""

    content_type: str = "application/octet-stream"
    """Content type stored with the object."""

    encryption_args: dict[str, str] = Field(default_factory=dict)
    """Store-specific encryption arguments, as produced by the configured encryption mode."""


class UploadOutput(BaseModel, frozen=True):
    """What the object store reports back after a successful upload."""

    location: str
    """Bucket-qualified object location."""

    etag: str | None = None
    """Entity tag of the stored object."""

    version_id: str | None = None
    """Version identifier when the bucket is versioned."""


class DeliveryResult(BaseModel, frozen=True):
    """Outcome of delivering one batch."""

    object_key: str
    """Key the batch was stored under."""

    bytes_written: int
    """Size of the uploaded body in bytes."""

    records_written: int = 0
    """Records encoded into the object."""

    error_records: int = 0
    """Records rejected to the error sink."""

    upload: UploadOutput | None = None
    """Raw object store response."""

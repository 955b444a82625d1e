"""Upload adapter applying the configured server-side encryption."""

from batch_sink.models.params import Encryption
from batch_sink.models.results import UploadOutput, UploadRequest
from batch_sink.protocols import ObjectStore


class SecureUploadAdapter:
    """Attach encryption arguments to every upload sent to an object store."""

    __slots__ = ("_encryption", "_store")

    def __init__(self, store: ObjectStore, encryption: Encryption) -> None:
        self._store = store
        self._encryption = encryption

    def build_request(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str = "application/octet-stream",
    ) -> UploadRequest:
        return UploadRequest(
            bucket=bucket,
            key=key,
            body=body,
            content_type=content_type,
            encryption_args=self._encryption.upload_args(),
        )

    async def upload(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str = "application/octet-stream",
    ) -> UploadOutput:
        """Upload the body. Store errors propagate unchanged."""
        return await self._store.upload(self.build_request(bucket, key, body, content_type))

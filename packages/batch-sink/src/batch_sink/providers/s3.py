"""S3 object store using boto3."""

from typing import TYPE_CHECKING, ClassVar, Self

from pydantic import BaseModel

from batch_sink.errors import ErrorKind, SinkError
from batch_sink.models.results import UploadOutput, UploadRequest

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

try:
    import boto3
    from botocore.exceptions import BotoCoreError, ClientError
except ImportError as e:
    _msg = "boto3 is required for S3 support. Install with: pip install 'batch-sink[s3]'"
    raise ImportError(_msg) from e


class S3Credentials(BaseModel, frozen=True):
    """Credentials for S3 connection."""

    access_key_id: str
    secret_access_key: str
    region: str = "us-east-1"
    endpoint_url: str | None = None


class S3Params(BaseModel, frozen=True):
    """Parameters for S3 operations."""

    bucket: str
    """Bucket checked on connect."""


class S3ObjectStore:
    """S3 object store for batch uploads."""

    __slots__: ClassVar[tuple[str, str]] = ("_client", "_params")

    _client: "S3Client"
    _params: S3Params

    def __init__(self, client: "S3Client", params: S3Params) -> None:
        self._client = client
        self._params = params

    @classmethod
    async def connect(cls, credentials: S3Credentials, params: S3Params) -> Self:
        """Create S3 client."""
        try:
            client: S3Client = boto3.client(  # pyright: ignore[reportUnknownMemberType]
                "s3",
                aws_access_key_id=credentials.access_key_id,
                aws_secret_access_key=credentials.secret_access_key,
                region_name=credentials.region,
                endpoint_url=credentials.endpoint_url,
            )
            # Verify connection by checking bucket exists
            _ = client.head_bucket(Bucket=params.bucket)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "404":
                msg = f"Bucket '{params.bucket}' not found"
                raise SinkError(msg, kind=ErrorKind.NOT_FOUND, source=e) from e
            msg = f"Failed to connect to S3: {e}"
            raise SinkError(msg, kind=ErrorKind.CONNECTION, source=e) from e
        except Exception as e:
            msg = f"Failed to connect to S3: {e}"
            raise SinkError(msg, kind=ErrorKind.CONNECTION, source=e) from e

        return cls(client, params)

    async def disconnect(self) -> None:
        """Close the S3 client (no-op for boto3)."""

    async def upload(self, request: UploadRequest) -> UploadOutput:
        """Put one object, passing the request's encryption arguments through."""
        try:
            response = self._client.put_object(
                Bucket=request.bucket,
                Key=request.key,
                Body=request.body,
                ContentType=request.content_type,
                **request.encryption_args,  # pyright: ignore[reportArgumentType]
            )
        except (ClientError, BotoCoreError) as e:
            msg = f"Failed to upload '{request.key}' to S3: {e}"
            raise SinkError(msg, kind=ErrorKind.UPLOAD, source=e) from e

        return UploadOutput(
            location=f"s3://{request.bucket}/{request.key}",
            etag=response.get("ETag"),
            version_id=response.get("VersionId"),
        )


ObjectStore = S3ObjectStore

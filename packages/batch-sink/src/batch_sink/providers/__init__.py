"""Provider implementations for external services.

Each provider module exports an alias for its main class (`ObjectStore` or
`OffsetStore`), along with its credentials and params types.

Available providers (require optional dependencies):
- postgres: offset store on PostgreSQL via asyncpg
- s3: object store on AWS S3 / MinIO via boto3
"""

from batch_sink.providers import postgres, s3

__all__ = [
    "postgres",
    "s3",
]

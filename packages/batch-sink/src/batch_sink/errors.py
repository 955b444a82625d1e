"""Error types for delivery and offset operations."""

from enum import StrEnum
from typing import final


class ErrorKind(StrEnum):
    """Classification of sink errors."""

    CONNECTION = "connection"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    TIMEOUT = "timeout"
    PROVIDER = "provider"
    CONFIGURATION = "configuration"
    PERSISTENCE = "persistence"
    ENCODE = "encode"
    UPLOAD = "upload"


_RETRYABLE = frozenset(
    {ErrorKind.CONNECTION, ErrorKind.TIMEOUT, ErrorKind.PERSISTENCE, ErrorKind.UPLOAD}
)


@final
class SinkError(Exception):
    """Base error for all sink operations."""

    __slots__ = ("kind", "message", "source")

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.PROVIDER,
        source: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.source = source

    @property
    def retryable(self) -> bool:
        """Whether re-issuing the failed call may succeed."""
        return self.kind in _RETRYABLE

    def __repr__(self) -> str:
        return f"SinkError({self.message!r}, kind={self.kind!r})"

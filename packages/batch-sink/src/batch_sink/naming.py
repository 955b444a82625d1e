"""Unique object names for delivered batches."""

from datetime import UTC, datetime

from batch_sink.compression import GZIP_EXTENSION


class ObjectNamer:
    """Build `<prefix><millis>-<n>[.<suffix>][.gz]` names.

    The counter starts at 1 and belongs to this instance. Batches delivered
    within the same millisecond still get distinct names, as long as every
    concurrent writer owns its own namer.
    """

    __slots__ = ("_compress", "_count", "_suffix")

    def __init__(self, suffix: str = "", *, compress: bool = False) -> None:
        self._suffix = suffix
        self._compress = compress
        self._count = 0

    @property
    def count(self) -> int:
        """Number of names handed out so far."""
        return self._count

    def next_name(self, key_prefix: str, now: datetime | None = None) -> str:
        now = now or datetime.now(UTC)
        self._count += 1

        name = f"{key_prefix}{int(now.timestamp() * 1000)}-{self._count}"
        if self._suffix:
            name += f".{self._suffix}"
        if self._compress:
            name += GZIP_EXTENSION
        return name

"""Offset types for resumable sources."""

from collections.abc import Sequence

from pydantic import BaseModel, Field

from batch_sink.models.records import Record

END_OF_STREAM = ""
"""Offset value a source reports once it has nothing left to read."""


class SourceOffset(BaseModel, frozen=True):
    """Serialized position of a source.

    The value is opaque to the stage. An empty string marks an exhausted
    source, and is also what a pipeline without history starts from.
    """

    offset: str = END_OF_STREAM
    """Opaque source position."""


class SourceBatch(BaseModel, frozen=True):
    """Records read from a source together with the offset that follows them."""

    records: Sequence[Record] = Field(default_factory=tuple)
    """Records in source order."""

    next_offset: str = END_OF_STREAM
    """Offset to resume from once this batch is delivered."""

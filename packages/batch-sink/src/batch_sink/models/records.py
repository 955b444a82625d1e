"""Record types flowing through a delivery stage.

The stage never interprets a record's value. It only counts, encodes,
or rejects it, so the value is any JSON-compatible payload.
"""

from pydantic import BaseModel, Field
from typing_extensions import TypeAliasType

# JSON-compatible value type
JsonValue = TypeAliasType(
    "JsonValue", str | int | float | bool | None | list["JsonValue"] | dict[str, "JsonValue"]
)


class RecordHeader(BaseModel):
    """Provenance attached to a record by its source."""

    source_id: str = ""
    """Identifier of the record within its source (file and line, topic and offset, ...)."""

    attributes: dict[str, str] = Field(default_factory=dict)
    """Free-form header attributes."""


class Record(BaseModel):
    """A single unit of data produced by a source."""

    value: JsonValue = None
    """Record payload."""

    header: RecordHeader = Field(default_factory=RecordHeader)
    """Record header."""

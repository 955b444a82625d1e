"""Offset stores that need no external service."""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from batch_sink.errors import ErrorKind, SinkError
from batch_sink.models.offsets import SourceOffset

logger = logging.getLogger(__name__)

OFFSET_FILE = "offset.json"


class MemoryOffsetStore:
    """Offsets kept in a dict. Lost when the process exits."""

    def __init__(self, offsets: dict[str, SourceOffset] | None = None) -> None:
        self.offsets: dict[str, SourceOffset] = dict(offsets or {})

    async def get_offset(self, pipeline_name: str) -> SourceOffset:
        return self.offsets.get(pipeline_name, SourceOffset())

    async def save_offset(self, pipeline_name: str, offset: SourceOffset) -> None:
        self.offsets[pipeline_name] = offset


class FileOffsetStore:
    """Offsets kept as `<directory>/<pipeline>/offset.json`.

    Each save replaces the file atomically, so a crash leaves either the
    previous or the new offset on disk.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path_for(self, pipeline_name: str) -> Path:
        return self.directory / pipeline_name / OFFSET_FILE

    async def get_offset(self, pipeline_name: str) -> SourceOffset:
        path = self.path_for(pipeline_name)
        try:
            return SourceOffset.model_validate_json(path.read_bytes())
        except FileNotFoundError:
            return SourceOffset()
        except (OSError, ValidationError) as e:
            msg = f"Failed to read offset file '{path}': {e}"
            raise SinkError(msg, kind=ErrorKind.INVALID_INPUT, source=e) from e

    async def save_offset(self, pipeline_name: str, offset: SourceOffset) -> None:
        path = self.path_for(pipeline_name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".offset-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(offset.model_dump(), f)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            msg = f"Failed to write offset file '{path}': {e}"
            raise SinkError(msg, kind=ErrorKind.PERSISTENCE, source=e) from e

        logger.debug("Saved offset", extra={"path": str(path)})

"""Object store destination stage."""

from collections.abc import Sequence

from batch_sink.file_helper import FileHelper
from batch_sink.models.records import Record
from batch_sink.models.results import DeliveryResult


class ObjectStoreTarget:
    """Write each batch as one object under the configured prefixes."""

    def __init__(self, helper: FileHelper) -> None:
        self.helper = helper

    def key_prefix(self) -> str:
        """Return `<common_prefix>/<file_name_prefix>-`, omitting empty parts."""
        config = self.helper.config
        prefix = config.common_prefix.strip("/")
        if prefix:
            prefix += "/"
        if config.file_name_prefix:
            prefix += f"{config.file_name_prefix}-"
        return prefix

    async def write(self, records: Sequence[Record]) -> DeliveryResult:
        return await self.helper.handle(records, self.helper.config.bucket, self.key_prefix())

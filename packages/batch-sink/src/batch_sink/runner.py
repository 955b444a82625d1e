"""Single-stage pipeline runner with at-least-once delivery."""

import logging
from datetime import UTC, datetime

from batch_sink.models.results import DeliveryResult
from batch_sink.protocols import BatchSource
from batch_sink.target import ObjectStoreTarget
from batch_sink.tracker import OffsetTracker

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


class PipelineRunner:
    """Move batches from a source to a target, committing offsets after delivery.

    A crash between delivery and commit re-delivers the last batch on
    restart. A failed delivery leaves the offset uncommitted.
    """

    def __init__(
        self,
        source: BatchSource,
        tracker: OffsetTracker,
        target: ObjectStoreTarget,
        max_batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if max_batch_size < 1:
            msg = "max_batch_size must be at least 1"
            raise ValueError(msg)
        self.source = source
        self.tracker = tracker
        self.target = target
        self.max_batch_size = max_batch_size

    async def run_batch(self) -> DeliveryResult:
        """Read, deliver, and commit one batch."""
        self.tracker.set_last_batch_time(datetime.now(UTC))

        batch = await self.source.read_batch(self.tracker.get_offset(), self.max_batch_size)
        self.tracker.set_offset(batch.next_offset)

        result = await self.target.write(batch.records)
        await self.tracker.commit_offset()

        logger.info(
            "Committed batch",
            extra={
                "pipeline_name": self.tracker.pipeline_name,
                "object_key": result.object_key,
                "offset": self.tracker.get_offset(),
            },
        )
        return result

    async def run(self) -> list[DeliveryResult]:
        """Run batches until the source reports end of stream."""
        results: list[DeliveryResult] = []
        while not self.tracker.is_finished():
            results.append(await self.run_batch())
        logger.info(
            "Pipeline finished",
            extra={"pipeline_name": self.tracker.pipeline_name, "batches": len(results)},
        )
        return results

"""Single-flight worker that drains the scan queue."""
import asyncio
from typing import Optional

from scanqueue import settings
from scanqueue.logging_conf import logger
from scanqueue.queue.models import QueueItem
from scanqueue.queue.scan_queue import ScanQueue
from scanqueue.resolver import AttendanceResolver, Outcome


class QueueProcessor:
    """
    Resolves pending queue items one at a time, in enqueue order.

    At most one pass runs at a time. Each pass works on the pending items
    present when it started; a trigger dropped while a pass is active makes
    the processor start one follow-up pass once the active one finishes.
    """

    def __init__(self, queue: ScanQueue, resolver: AttendanceResolver, throttle_ms: Optional[int] = None):
        self.queue = queue
        self.resolver = resolver
        self.throttle_ms = settings.SCAN_THROTTLE_MS if throttle_ms is None else throttle_ms
        self.running = False
        self.passes = 0
        self._rerun_requested = False
        self._task: Optional[asyncio.Task] = None

    def schedule(self) -> None:
        """Start a pass in the background unless one is already running."""
        if self.running or (self._task is not None and not self._task.done()):
            self._rerun_requested = True
            logger.debug("Processor busy, deferring trigger")
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            self._rerun_requested = False
            await self.process_pending()
            if not (self._rerun_requested and self.queue.pending()):
                break

    async def process_pending(self) -> int:
        """Run one pass over a snapshot of pending items. Returns count processed."""
        batch = self.queue.pending()
        if not batch:
            return 0

        if self.running:
            self._rerun_requested = True
            return 0

        self.running = True
        self.passes += 1
        processed = 0
        logger.info(f"Processing pass {self.passes}: {len(batch)} pending scans")
        try:
            for item in batch:
                await self._process_item(item)
                processed += 1
                # Throttle repository traffic
                await asyncio.sleep(self.throttle_ms / 1000)
        finally:
            self.running = False

        logger.info(f"Pass {self.passes} finished: {processed} scans processed")
        return processed

    async def _process_item(self, item: QueueItem) -> None:
        item.mark_processing()
        try:
            resolution = await self.resolver.resolve(item.identifier)
        except Exception as e:
            logger.error(f"Failed to process scan {item.identifier}: {e}", exc_info=True,
                         extra={"identifier": item.identifier})
            item.mark_error("System error")
            return

        if resolution.outcome is Outcome.MARKED:
            item.mark_success(resolution.name, resolution.chapter)
        elif resolution.outcome is Outcome.ALREADY_MARKED:
            item.mark_error(resolution.error, resolution.name, resolution.chapter)
        else:
            item.mark_error(resolution.error)

        if self.queue.get(item.id) is not item:
            logger.debug(f"Scan {item.id} finished after the queue was cleared",
                         extra={"identifier": item.identifier})

    async def wait_idle(self) -> None:
        """Wait until no pass is running or scheduled."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)

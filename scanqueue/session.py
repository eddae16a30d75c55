"""Scanner session: decoding, dedup and dispatch to batch or direct mode."""
from dataclasses import dataclass
from typing import Callable, List, Optional

from scanqueue import settings
from scanqueue.dedup import DedupGate
from scanqueue.direct import Confirmation, DirectFlow
from scanqueue.logging_conf import logger
from scanqueue.payload import DecodedPayload, decode_payload
from scanqueue.processor import QueueProcessor
from scanqueue.queue.models import QueueItem
from scanqueue.queue.scan_queue import ScanQueue
from scanqueue.queue.stats import QueueStats, count_by_status
from scanqueue.repository import AttendanceRepository
from scanqueue.resolver import AttendanceResolver, Resolution

DUPLICATE_SCAN = "duplicate_scan"
CHECKSUM_REJECTED = "checksum_rejected"
BUSY = "busy"


@dataclass(frozen=True)
class ScanOutcome:
    """What happened to one submitted scan."""

    accepted: bool
    reason: Optional[str] = None
    payload: Optional[DecodedPayload] = None
    item: Optional[QueueItem] = None
    resolution: Optional[Resolution] = None


class ScanSession:
    """Entry point for a scan source and read model for the display."""

    def __init__(
        self,
        repository: AttendanceRepository,
        *,
        batch_mode: Optional[bool] = None,
        cooldown_ms: Optional[int] = None,
        throttle_ms: Optional[int] = None,
        confirmation_ms: Optional[int] = None,
        checksum_policy: Optional[str] = None,
        clock: Optional[Callable[[], float]] = None,
        notify: Optional[Callable[[str, str], None]] = None,
    ):
        self.resolver = AttendanceResolver(repository)
        self.queue = ScanQueue()
        self.processor = QueueProcessor(self.queue, self.resolver, throttle_ms=throttle_ms)
        self.direct = DirectFlow(self.resolver, confirmation_ms=confirmation_ms, notify=notify)
        self.dedup = DedupGate(cooldown_ms) if clock is None else DedupGate(cooldown_ms, clock=clock)
        self.batch_mode = settings.BATCH_MODE if batch_mode is None else batch_mode
        self.checksum_policy = (checksum_policy or settings.CHECKSUM_POLICY).lower()

    def start_session(self) -> None:
        """Begin a new scanning session."""
        self.dedup.reset()
        logger.info(f"Scanning session started ({'batch' if self.batch_mode else 'direct'} mode)")

    def enable_batch_mode(self) -> None:
        if self.batch_mode:
            return
        self.direct.cancel()
        self.batch_mode = True
        self.dedup.reset()
        logger.info("Batch mode enabled")

    def disable_batch_mode(self) -> None:
        if not self.batch_mode:
            return
        self.batch_mode = False
        self.queue.clear()
        self.dedup.reset()
        logger.info("Batch mode disabled")

    def clear_queue(self) -> int:
        return self.queue.clear()

    async def submit(self, raw_text) -> ScanOutcome:
        """Handle one decoded scan from the scan source."""
        payload = decode_payload(raw_text)
        extra = {"identifier": payload.identifier}

        if payload.has_checksum and not payload.verified and self.checksum_policy == "reject":
            logger.warning(f"Rejected scan {payload.identifier}: checksum does not match", extra=extra)
            return ScanOutcome(False, CHECKSUM_REJECTED, payload)

        if not self.dedup.accept(payload.identifier):
            return ScanOutcome(False, DUPLICATE_SCAN, payload)

        if self.batch_mode:
            item = self.queue.enqueue(payload.identifier, checksum=payload.checksum, verified=payload.verified)
            self.processor.schedule()
            return ScanOutcome(True, payload=payload, item=item)

        resolution = await self.direct.handle(payload)
        if resolution is None:
            return ScanOutcome(False, BUSY, payload)
        return ScanOutcome(True, payload=payload, resolution=resolution)

    @property
    def items(self) -> List[QueueItem]:
        return self.queue.items()

    @property
    def stats(self) -> QueueStats:
        return count_by_status(self.queue.items())

    @property
    def confirmation(self) -> Optional[Confirmation]:
        return self.direct.confirmation

    async def wait_idle(self) -> None:
        """Wait for the queue processor and any direct-mode confirmation."""
        await self.processor.wait_idle()
        await self.direct.wait_ready()

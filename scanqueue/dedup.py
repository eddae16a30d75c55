"""Suppress repeated deliveries of the same scan."""
import time
from typing import Callable, Optional

from scanqueue import settings
from scanqueue.logging_conf import logger


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class DedupGate:
    """
    Drops a scan whose identifier matches the last accepted one within the cooldown.

    A live camera feed decodes the same code on many consecutive frames; the
    gate turns that frame stream into one event per physical scan.
    """

    def __init__(self, cooldown_ms: Optional[int] = None, clock: Callable[[], float] = _monotonic_ms):
        self.cooldown_ms = settings.SCAN_COOLDOWN_MS if cooldown_ms is None else cooldown_ms
        self._clock = clock
        self.last_identifier: Optional[str] = None
        self.last_timestamp: Optional[float] = None

    def accept(self, identifier: str) -> bool:
        """Return True and remember the scan if it is a new event."""
        now = self._clock()
        if (
            identifier == self.last_identifier
            and self.last_timestamp is not None
            and now - self.last_timestamp < self.cooldown_ms
        ):
            logger.debug(f"Dropped repeat scan {identifier}", extra={"identifier": identifier})
            return False

        self.last_identifier = identifier
        self.last_timestamp = now
        return True

    def reset(self) -> None:
        self.last_identifier = None
        self.last_timestamp = None

"""Per-status counts for display."""
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from scanqueue.queue.models import ItemStatus, QueueItem


@dataclass(frozen=True)
class QueueStats:
    """Queue statistics."""

    total: int = 0
    pending: int = 0
    processing: int = 0
    success: int = 0
    error: int = 0

    @property
    def done(self) -> int:
        return self.success + self.error


def count_by_status(items: Iterable[QueueItem]) -> QueueStats:
    """Count items per status with a full rescan."""
    counts = Counter(item.status for item in items)
    return QueueStats(
        total=sum(counts.values()),
        pending=counts[ItemStatus.PENDING],
        processing=counts[ItemStatus.PROCESSING],
        success=counts[ItemStatus.SUCCESS],
        error=counts[ItemStatus.ERROR],
    )

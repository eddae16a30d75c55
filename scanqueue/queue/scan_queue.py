"""In-memory scan queue, indexed by item id."""
from datetime import datetime
from typing import Dict, List, Optional

from scanqueue.logging_conf import logger
from scanqueue.queue.models import ItemStatus, QueueItem


class ScanQueue:
    """
    Ordered store of queue items.

    Items are only ever appended; their status is mutated in place by the
    processor. Removal happens only through ``clear``.
    """

    def __init__(self):
        self._items: List[QueueItem] = []
        self._index: Dict[str, QueueItem] = {}

    def enqueue(self, identifier: str, checksum: Optional[str] = None, verified: bool = False,
                enqueued_at: Optional[datetime] = None) -> QueueItem:
        """Append a pending item for ``identifier`` and return it."""
        item = QueueItem.create(identifier, checksum=checksum, verified=verified, enqueued_at=enqueued_at)

        # Same identifier within the same millisecond: keep ids unique
        if item.id in self._index:
            base_id = item.id
            suffix = 1
            while f"{base_id}-{suffix}" in self._index:
                suffix += 1
            item.id = f"{base_id}-{suffix}"

        self._items.append(item)
        self._index[item.id] = item
        logger.info(
            f"Queued {item.identifier} ({item.id}), {len(self._items)} in queue",
            extra={"identifier": item.identifier},
        )
        return item

    def pending(self) -> List[QueueItem]:
        """Snapshot of pending items in enqueue order."""
        return [item for item in self._items if item.status is ItemStatus.PENDING]

    def get(self, item_id: str) -> Optional[QueueItem]:
        return self._index.get(item_id)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._index

    def items(self) -> List[QueueItem]:
        """Ordered shallow snapshot of all items."""
        return list(self._items)

    def clear(self) -> int:
        """Drop every item regardless of status. Returns how many were dropped."""
        dropped = len(self._items)
        self._items = []
        self._index = {}
        if dropped:
            logger.info(f"Cleared {dropped} items from scan queue")
        return dropped

    def size(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

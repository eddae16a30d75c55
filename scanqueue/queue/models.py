"""Queue data models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from scanqueue.errors import InvalidTransition


class ItemStatus(str, Enum):
    """Lifecycle of a queued scan."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.SUCCESS, ItemStatus.ERROR)


_ALLOWED = {
    ItemStatus.PENDING: (ItemStatus.PROCESSING,),
    ItemStatus.PROCESSING: (ItemStatus.SUCCESS, ItemStatus.ERROR),
    ItemStatus.SUCCESS: (),
    ItemStatus.ERROR: (),
}


@dataclass
class QueueItem:
    """Represents a scan waiting for, or done with, attendance resolution."""

    id: str
    identifier: str
    enqueued_at: datetime
    status: ItemStatus = ItemStatus.PENDING
    name: Optional[str] = None
    chapter: Optional[str] = None
    error: Optional[str] = None
    checksum: Optional[str] = None
    verified: bool = False
    finished_at: Optional[datetime] = field(default=None, compare=False)

    @classmethod
    def create(cls, identifier: str, checksum: Optional[str] = None, verified: bool = False,
               enqueued_at: Optional[datetime] = None):
        """Factory method to create a pending QueueItem keyed by identifier and enqueue time."""
        enqueued_at = enqueued_at or datetime.now()
        return cls(
            id=f"{identifier}-{int(enqueued_at.timestamp() * 1000)}",
            identifier=identifier,
            enqueued_at=enqueued_at,
            checksum=checksum,
            verified=verified,
        )

    def transition(self, status: ItemStatus) -> None:
        if status not in _ALLOWED[self.status]:
            raise InvalidTransition(f"{self.id}: {self.status.value} -> {status.value}")
        self.status = status
        if status.is_terminal:
            self.finished_at = datetime.now()

    def mark_processing(self) -> None:
        self.transition(ItemStatus.PROCESSING)

    def mark_success(self, name: Optional[str], chapter: Optional[str]) -> None:
        self.transition(ItemStatus.SUCCESS)
        self.name = name
        self.chapter = chapter

    def mark_error(self, error: str, name: Optional[str] = None, chapter: Optional[str] = None) -> None:
        self.transition(ItemStatus.ERROR)
        self.error = error
        self.name = name
        self.chapter = chapter

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "identifier": self.identifier,
            "enqueued_at": self.enqueued_at.isoformat(),
            "status": self.status.value,
            "name": self.name,
            "chapter": self.chapter,
            "error": self.error,
            "checksum": self.checksum,
            "verified": self.verified,
        }

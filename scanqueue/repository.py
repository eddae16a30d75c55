"""Attendance repository contract shared by all backends."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


@dataclass(frozen=True)
class Member:
    """A registered person that can be marked present."""

    id: str
    id_number: str
    name: str
    chapter: Optional[str] = None


class InsertOutcome(str, Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"  # already has an attendance record for the current period
    ERROR = "error"


class AttendanceRepository(Protocol):
    async def lookup_by_identifier(self, identifier: str) -> Optional[Member]:
        """Return the member whose ID number is ``identifier``, or None."""
        raise NotImplementedError

    async def insert_attendance(self, member: Member) -> InsertOutcome:
        """Record attendance; report a uniqueness conflict instead of raising."""
        raise NotImplementedError

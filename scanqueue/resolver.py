"""Resolve a scanned identifier into an attendance record."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from scanqueue.logging_conf import logger
from scanqueue.repository import AttendanceRepository, InsertOutcome


class Outcome(str, Enum):
    MARKED = "marked"
    NOT_FOUND = "not_found"
    ALREADY_MARKED = "already_marked"
    PROCESSING_ERROR = "processing_error"
    SYSTEM_ERROR = "system_error"


# Messages shown next to a queue item
ERROR_MESSAGES = {
    Outcome.NOT_FOUND: "Not found",
    Outcome.ALREADY_MARKED: "Already marked",
    Outcome.PROCESSING_ERROR: "Processing error",
    Outcome.SYSTEM_ERROR: "System error",
}


@dataclass(frozen=True)
class Resolution:
    outcome: Outcome
    identifier: str
    name: Optional[str] = None
    chapter: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.MARKED

    @property
    def error(self) -> Optional[str]:
        return ERROR_MESSAGES.get(self.outcome)


class AttendanceResolver:
    """Looks a member up and records their attendance, classifying the result."""

    def __init__(self, repository: AttendanceRepository):
        self.repository = repository

    async def resolve(self, identifier: str) -> Resolution:
        """
        Look up ``identifier`` and insert an attendance record for it.

        Returns:
            Resolution; never raises for repository failures
        """
        extra = {"identifier": identifier}
        try:
            member = await self.repository.lookup_by_identifier(identifier)
        except Exception as e:
            logger.error(f"Lookup failed for {identifier}: {e}", exc_info=True, extra=extra)
            return Resolution(Outcome.SYSTEM_ERROR, identifier)

        if member is None:
            logger.info(f"No member with ID {identifier}", extra=extra)
            return Resolution(Outcome.NOT_FOUND, identifier)

        try:
            result = await self.repository.insert_attendance(member)
        except Exception as e:
            logger.error(f"Attendance insert failed for {identifier}: {e}", exc_info=True, extra=extra)
            return Resolution(Outcome.SYSTEM_ERROR, identifier, member.name, member.chapter)

        if result is InsertOutcome.SUCCESS:
            logger.info(f"Attendance marked for {member.name} ({member.chapter})", extra=extra)
            return Resolution(Outcome.MARKED, identifier, member.name, member.chapter)
        if result is InsertOutcome.CONFLICT:
            logger.info(f"{member.name} is already marked", extra=extra)
            return Resolution(Outcome.ALREADY_MARKED, identifier, member.name, member.chapter)

        logger.warning(f"Repository rejected attendance for {identifier}", extra=extra)
        return Resolution(Outcome.PROCESSING_ERROR, identifier)

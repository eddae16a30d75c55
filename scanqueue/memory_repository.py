"""In-memory attendance repository for demos and offline scanning."""
import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from scanqueue.logging_conf import logger
from scanqueue.repository import InsertOutcome, Member


class InMemoryAttendanceRepository:
    """Members keyed by ID number; one attendance record per member per day."""

    def __init__(self, members: Iterable[Member] = (), latency: float = 0.0,
                 today: Callable[[], date] = date.today):
        self.members: Dict[str, Member] = {m.id_number: m for m in members}
        self.latency = latency
        self._today = today
        self.attendance: Set[Tuple[str, date]] = set()
        self.calls: List[Tuple[str, str]] = []

    @classmethod
    def from_file(cls, path, **kwargs):
        """Load members from a JSON list of ``{id, id_number, missionary_name, chapter}``."""
        rows = json.loads(Path(path).read_text(encoding="utf-8"))
        members = [
            Member(
                id=str(row.get("id") or row["id_number"]),
                id_number=str(row["id_number"]),
                name=row.get("missionary_name") or row.get("name", ""),
                chapter=row.get("chapter"),
            )
            for row in rows
        ]
        logger.info(f"Loaded {len(members)} members from {path}")
        return cls(members, **kwargs)

    def add_member(self, member: Member) -> None:
        self.members[member.id_number] = member

    async def lookup_by_identifier(self, identifier: str) -> Optional[Member]:
        self.calls.append(("lookup", identifier))
        if self.latency:
            await asyncio.sleep(self.latency)
        return self.members.get(identifier)

    async def insert_attendance(self, member: Member) -> InsertOutcome:
        self.calls.append(("insert", member.id_number))
        if self.latency:
            await asyncio.sleep(self.latency)
        key = (member.id, self._today())
        if key in self.attendance:
            return InsertOutcome.CONFLICT
        self.attendance.add(key)
        return InsertOutcome.SUCCESS

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from scanqueue.repository import InsertOutcome, Member


class FakeRepository:
    """Scriptable repository that records calls and overlapping requests."""

    def __init__(self, members=(), latency: float = 0.0):
        self.members: Dict[str, Member] = {m.id_number: m for m in members}
        self.latency = latency
        self.latencies: Dict[str, float] = {}
        self.insert_results: Dict[str, InsertOutcome] = {}
        self.lookup_errors: Dict[str, Exception] = {}
        self.insert_errors: Dict[str, Exception] = {}
        self.calls: List[Tuple[str, str]] = []
        self.active = 0
        self.max_active = 0

    def add(self, id_number: str, name: Optional[str] = None, chapter: str = "North") -> Member:
        member = Member(id=f"m-{id_number}", id_number=id_number, name=name or f"Member {id_number}", chapter=chapter)
        self.members[id_number] = member
        return member

    async def _call(self, kind: str, identifier: str):
        self.calls.append((kind, identifier))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.latencies.get(identifier, self.latency))
        finally:
            self.active -= 1

    async def lookup_by_identifier(self, identifier: str) -> Optional[Member]:
        await self._call("lookup", identifier)
        if identifier in self.lookup_errors:
            raise self.lookup_errors[identifier]
        return self.members.get(identifier)

    async def insert_attendance(self, member: Member) -> InsertOutcome:
        await self._call("insert", member.id_number)
        if member.id_number in self.insert_errors:
            raise self.insert_errors[member.id_number]
        return self.insert_results.get(member.id_number, InsertOutcome.SUCCESS)


class FakeClock:
    def __init__(self, start: float = 10_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def clock():
    return FakeClock()

import asyncio
import json
from datetime import date

from scanqueue.memory_repository import InMemoryAttendanceRepository
from scanqueue.repository import InsertOutcome, Member

ANN = Member(id="m-1", id_number="100", name="Ann", chapter="North")


def test_second_insert_on_same_day_conflicts():
    repo = InMemoryAttendanceRepository([ANN])

    async def scenario():
        member = await repo.lookup_by_identifier("100")
        return member, await repo.insert_attendance(member), await repo.insert_attendance(member)

    member, first, second = asyncio.run(scenario())

    assert member == ANN
    assert (first, second) == (InsertOutcome.SUCCESS, InsertOutcome.CONFLICT)


def test_new_day_allows_a_new_record():
    days = iter([date(2024, 5, 1), date(2024, 5, 2)])
    repo = InMemoryAttendanceRepository([ANN], today=lambda: next(days))

    async def scenario():
        return [await repo.insert_attendance(ANN), await repo.insert_attendance(ANN)]

    assert asyncio.run(scenario()) == [InsertOutcome.SUCCESS, InsertOutcome.SUCCESS]


def test_from_file_loads_members(tmp_path):
    path = tmp_path / "members.json"
    path.write_text(json.dumps([
        {"id": "m-1", "id_number": "100", "missionary_name": "Ann", "chapter": "North"},
        {"id_number": 200, "name": "Ben"},
    ]), encoding="utf-8")

    repo = InMemoryAttendanceRepository.from_file(path)

    assert repo.members["100"] == ANN
    assert repo.members["200"] == Member(id="200", id_number="200", name="Ben", chapter=None)

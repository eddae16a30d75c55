from datetime import datetime

import pytest

from scanqueue.errors import InvalidTransition
from scanqueue.queue.models import ItemStatus, QueueItem
from scanqueue.queue.scan_queue import ScanQueue
from scanqueue.queue.stats import QueueStats, count_by_status


def test_item_id_combines_identifier_and_enqueue_time():
    at = datetime(2024, 5, 1, 9, 30)
    item = QueueItem.create("123", enqueued_at=at)

    assert item.id == f"123-{int(at.timestamp() * 1000)}"
    assert item.status is ItemStatus.PENDING


def test_ids_stay_unique_for_same_identifier_and_time():
    queue = ScanQueue()
    at = datetime(2024, 5, 1, 9, 30)

    first = queue.enqueue("123", enqueued_at=at)
    second = queue.enqueue("123", enqueued_at=at)
    third = queue.enqueue("123", enqueued_at=at)

    assert len({first.id, second.id, third.id}) == 3
    assert queue.get(second.id) is second


def test_enqueue_keeps_order_and_payload_fields():
    queue = ScanQueue()
    queue.enqueue("X", checksum="1j", verified=False)
    queue.enqueue("Y")

    items = queue.items()

    assert [i.identifier for i in items] == ["X", "Y"]
    assert items[0].checksum == "1j"
    assert items[0].verified is False


def test_pending_snapshot_excludes_started_items():
    queue = ScanQueue()
    a = queue.enqueue("A")
    b = queue.enqueue("B")
    a.mark_processing()

    assert queue.pending() == [b]


def test_transitions_are_one_directional():
    item = QueueItem.create("A")

    with pytest.raises(InvalidTransition):
        item.mark_success("n", "c")

    item.mark_processing()
    item.mark_error("Not found")

    assert item.finished_at is not None
    with pytest.raises(InvalidTransition):
        item.mark_processing()
    with pytest.raises(InvalidTransition):
        item.mark_success("n", "c")


def test_clear_drops_everything_but_keeps_detached_items_intact():
    queue = ScanQueue()
    done = queue.enqueue("A")
    done.mark_processing()
    done.mark_success("Ann", "North")
    queue.enqueue("B")

    assert queue.clear() == 2

    assert len(queue) == 0
    assert done.id not in queue
    assert done.status is ItemStatus.SUCCESS


def test_count_by_status():
    queue = ScanQueue()
    items = [queue.enqueue(str(n)) for n in range(5)]
    items[0].mark_processing()
    items[1].mark_processing()
    items[1].mark_success("a", "b")
    items[2].mark_processing()
    items[2].mark_error("Not found")

    stats = count_by_status(queue.items())

    assert stats == QueueStats(total=5, pending=2, processing=1, success=1, error=1)
    assert stats.done == 2


def test_count_by_status_of_empty_queue():
    assert count_by_status([]) == QueueStats()

import pytest
from sqlalchemy import select

from inventory_edge.core.state import ConnectivityState
from inventory_edge.db.models import PendingScan
from inventory_edge.domain.ledger.service import soft_delete, upsert_entity
from inventory_edge.domain.scan.service import NOT_FOUND_ERROR, ScanQueue, classify_code


@pytest.fixture
def queue(connectivity, remote):
    return ScanQueue(connectivity, remote)


async def _pending(db):
    return (await db.execute(select(PendingScan))).scalars().all()


@pytest.mark.parametrize(
    "code, expected",
    [
        ("ITM-00001", "item"),
        ("YIMS:ITEM:abc", "item"),
        ("SHF-0003", "location"),
        ("YIMS:DRAWER:9", "location"),
        ("hello", None),
    ],
)
def test_classify_code(code, expected):
    assert classify_code(code) == expected


async def test_found_item_is_served_and_queued(db, queue):
    await upsert_entity(db, "item", {"name": "Cable", "current_stock": 7, "minimum_stock": 2})

    response = await queue.serve_scan(db, "ITM-00001", "esp-1")

    assert response.success is True
    assert response.type == "item"
    assert response.data.current_stock == 7
    assert response.offline is True
    pending = await _pending(db)
    assert [(p.code, p.device_id, p.synced) for p in pending] == [("ITM-00001", "esp-1", False)]


async def test_unknown_code_is_not_queued(db, queue):
    response = await queue.serve_scan(db, "XYZ", "esp-1")

    assert response.success is False
    assert response.error == NOT_FOUND_ERROR
    assert response.data is None
    assert await _pending(db) == []


async def test_inactive_item_is_not_found(db, queue):
    item = await upsert_entity(db, "item", {"name": "Old"})
    await soft_delete(db, "item", item.id)

    response = await queue.serve_scan(db, item.code, "esp-1")

    assert response.success is False
    assert response.error == NOT_FOUND_ERROR


async def test_location_scan(db, queue):
    await upsert_entity(db, "location", {"name": "Shelf A", "location_type": "shelf"})

    response = await queue.serve_scan(db, "SHF-0001", "esp-2")

    assert response.success is True
    assert response.type == "location"
    assert response.data.location_type == "shelf"


async def test_local_answers_are_flagged_offline_even_when_online(db, remote):
    queue = ScanQueue(ConnectivityState(online=True, offline_mode=False), remote)
    await upsert_entity(db, "item", {"name": "Cable"})

    missing = await queue.serve_scan(db, "NOPE", "esp-1")
    found = await queue.serve_scan(db, "ITM-00001", "esp-1")

    assert missing.model_dump(include={"success", "error", "offline"}) == {
        "success": False,
        "error": NOT_FOUND_ERROR,
        "offline": True,
    }
    assert found.offline is True


async def test_drain_waits_while_offline(db, remote):
    connectivity = ConnectivityState(online=False)
    queue = ScanQueue(connectivity, remote)
    await upsert_entity(db, "item", {"name": "Cable"})
    await queue.serve_scan(db, "ITM-00001", "esp-1")

    outcome = await queue.drain_pending(db)

    assert outcome.synced == 0
    assert remote.calls == []
    assert await queue.pending_count(db) == 1

    connectivity.online = True
    assert (await queue.drain_pending(db)).synced == 1


async def test_drain_delivers_each_scan_once(db, queue, remote):
    await upsert_entity(db, "item", {"name": "Cable"})
    await queue.serve_scan(db, "ITM-00001", "esp-1")
    await queue.serve_scan(db, "ITM-00001", "esp-2")
    assert await queue.pending_count(db) == 2

    first = await queue.drain_pending(db)
    second = await queue.drain_pending(db)

    assert first.synced == 2
    assert second.synced == 0
    assert await queue.pending_count(db) == 0
    logs = remote.tables["scan_logs"]
    assert sorted(log["action_taken"] for log in logs) == ["esp32_scan:esp-1", "esp32_scan:esp-2"]


async def test_failed_delivery_keeps_row_pending(db, queue, remote):
    await upsert_entity(db, "item", {"name": "Cable"})
    await upsert_entity(db, "item", {"name": "Plug"})
    await queue.serve_scan(db, "ITM-00001", "esp-1")
    await queue.serve_scan(db, "ITM-00002", "esp-1")
    remote.unavailable.add("ITM-00001")

    outcome = await queue.drain_pending(db)

    assert outcome.synced == 1
    assert outcome.failed == 1
    assert [p.code for p in await _pending(db)] == ["ITM-00001"]

    remote.unavailable.clear()
    retry = await queue.drain_pending(db)
    assert retry.synced == 1
    assert await _pending(db) == []


async def test_drain_without_remote_reports_error(db, connectivity):
    outcome = await ScanQueue(connectivity).drain_pending(db)
    assert outcome.synced == 0
    assert outcome.errors

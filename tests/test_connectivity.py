import asyncio

import pytest

from inventory_edge.core.state import ConnectivityState
from inventory_edge.domain.ledger.service import upsert_entity
from inventory_edge.domain.scan.service import ScanQueue
from inventory_edge.domain.sync.monitor import ConnectivityMonitor
from inventory_edge.domain.sync.service import SyncEngine


@pytest.fixture
def offline():
    return ConnectivityState(online=False)


@pytest.fixture
def monitor(offline, remote, session_factory):
    engine = SyncEngine(remote, offline, scan_queue=ScanQueue(offline, remote))
    return ConnectivityMonitor(offline, remote, engine, session_factory=session_factory, interval=0.01)


def test_mark_online_reports_only_the_reconnect_edge():
    state = ConnectivityState(online=False)

    assert state.mark_online(True) is True
    assert state.mark_online(True) is False
    assert state.mark_online(False) is False
    assert state.serving_offline is True
    assert state.mark_online(True) is True
    assert state.serving_offline is False


async def test_reconnect_runs_a_sync_pass(db, monitor, remote):
    await upsert_entity(db, "category", {"name": "Tools"})
    await upsert_entity(db, "item", {"name": "Saw"})

    report = await monitor.update(True, db=db)

    assert report is not None and report.success
    assert report.synced == 2
    assert remote.find("items", "code", "ITM-00001")


async def test_staying_online_does_not_sync_again(db, monitor, remote):
    await monitor.update(True, db=db)
    remote.calls.clear()

    assert await monitor.update(True, db=db) is None
    assert remote.calls == []


async def test_going_offline_blocks_sync(db, monitor):
    await monitor.update(True, db=db)
    assert await monitor.update(False, db=db) is None

    report = await monitor.engine.run(db)
    assert report.skipped is True
    assert report.reason == "offline"


async def test_check_pings_remote_and_opens_its_own_session(db, monitor, remote):
    await upsert_entity(db, "category", {"name": "Tools"})
    remote.reachable = False
    assert await monitor.check() is None
    assert monitor.connectivity.online is False

    remote.reachable = True
    report = await monitor.check()

    assert report.synced == 1
    assert monitor.connectivity.online is True


async def test_reconnect_drains_scans_queued_while_offline(db, monitor, remote):
    await upsert_entity(db, "item", {"name": "Saw"})
    queue = monitor.engine.scan_queue
    await queue.serve_scan(db, "ITM-00001", "esp-1")
    assert (await queue.drain_pending(db)).synced == 0

    report = await monitor.update(True, db=db)

    assert report.scans_synced == 1
    assert len(remote.tables["scan_logs"]) == 1


async def test_background_loop_notices_reconnect(monitor, remote):
    remote.reachable = False
    task = asyncio.create_task(monitor.run_forever())
    try:
        await asyncio.sleep(0.05)
        assert monitor.connectivity.online is False
        remote.reachable = True
        for _ in range(100):
            if monitor.connectivity.online:
                break
            await asyncio.sleep(0.01)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert monitor.connectivity.online is True

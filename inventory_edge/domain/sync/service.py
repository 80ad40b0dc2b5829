# inventory_edge/domain/sync/service.py
"""One-way reconciliation of local master data into the remote store.

Rows are matched by natural key (category name, location code, item code)
and resolved last-writer-wins on ``updated_at``: a strictly newer local row
is pushed, anything else is left alone. The local copy is never refreshed
from the remote here, so a stale local row stays stale until edited.

Tables are pushed Categories -> Locations -> Items so that the remote ids
an item refers to exist before the item does. Variants and stock
transactions stay local.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from inventory_edge.core.errors import DatabaseIOFailure, RemoteError
from inventory_edge.core.state import ConnectivityState
from inventory_edge.core.timeutils import as_utc, iso, utcnow
from inventory_edge.db.models import Category, Item, Location, SyncState
from inventory_edge.db.repositories.ledger import list_all
from inventory_edge.domain.ledger.tree import parents_first
from inventory_edge.domain.scan.service import ScanQueue
from .schemas import RemoteIds, SyncReport, SyncStatus, TableResult

logger = logging.getLogger(__name__)

STREAM_NAME = "master-data"


def local_is_newer(local_updated_at, remote_updated_at) -> bool:
    if remote_updated_at is None:
        return True
    return as_utc(local_updated_at) > as_utc(remote_updated_at)


def _resolve(mapping, local_id):
    if local_id is None:
        return None
    return mapping.get(local_id)


class SyncEngine:
    """Runs reconciliation passes; at most one at a time per instance.

    A trigger that arrives while a pass is running, or while the device is
    offline, returns a skipped report without touching anything.
    """

    def __init__(
        self,
        remote,
        connectivity: ConnectivityState,
        scan_queue: Optional[ScanQueue] = None,
        stream_name: str = STREAM_NAME,
    ):
        self.remote = remote
        self.connectivity = connectivity
        self.scan_queue = scan_queue
        self.stream_name = stream_name
        self._in_progress = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    async def run(self, db: AsyncSession) -> SyncReport:
        if not self.connectivity.online:
            return SyncReport(success=False, skipped=True, reason="offline")
        if self._in_progress:
            return SyncReport(success=False, skipped=True, reason="sync already in progress")

        self._in_progress = True
        try:
            return await self._run(db)
        finally:
            self._in_progress = False

    async def _run(self, db: AsyncSession) -> SyncReport:
        started_at = utcnow()
        ids = RemoteIds()
        logger.info("Sync pass started")

        results = [
            await self._guarded(db, "categories", self._sync_categories, ids),
            await self._guarded(db, "locations", self._sync_locations, ids),
            await self._guarded(db, "items", self._sync_items, ids),
        ]

        errors = [e for r in results for e in r.errors]
        report = SyncReport(
            success=False,
            synced=sum(r.synced for r in results),
            errors=errors,
            tables={r.table: r.synced for r in results},
            started_at=started_at,
        )

        if self.scan_queue is not None:
            try:
                drained = await self.scan_queue.drain_pending(db, self.remote)
                report.scans_synced = drained.synced
                report.errors.extend(drained.errors)
            except DatabaseIOFailure as exc:
                report.errors.append(f"Scan queue drain failed: {exc}")

        report.finished_at = utcnow()
        report.success = not report.errors
        await self._record_last_sync(db, report)

        if report.errors:
            logger.warning("Synced %s rows with %s errors", report.synced, len(report.errors))
        else:
            logger.info("Synced %s rows", report.synced)
        return report

    async def _guarded(self, db: AsyncSession, table: str, sync_table, ids: RemoteIds) -> TableResult:
        result = TableResult(table=table)
        try:
            await sync_table(db, ids, result)
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.exception("Reading local %s failed", table)
            result.errors.append(f"{table.capitalize()} sync failed: {exc}")
        return result

    async def _push(self, table: str, key: str, value, local_updated_at, fields: dict) -> tuple:
        """Insert or update one row remotely; returns (remote_id, changed)."""
        existing = await self.remote.select_one(table, key, value)
        if existing is None:
            inserted = await self.remote.insert(table, {key: value, **fields})
            return inserted.get("id"), True
        if local_is_newer(local_updated_at, existing.get("updated_at")):
            await self.remote.update(table, existing["id"], fields)
            return existing["id"], True
        return existing["id"], False

    async def _sync_categories(self, db: AsyncSession, ids: RemoteIds, result: TableResult):
        for cat in await list_all(db, Category):
            try:
                remote_id, changed = await self._push(
                    "categories",
                    "name",
                    cat.name,
                    cat.updated_at,
                    {
                        "description": cat.description,
                        "color": cat.color,
                        "icon": cat.icon,
                        "is_active": cat.is_active,
                    },
                )
            except (RemoteError, ValueError) as exc:
                result.errors.append(f'Category "{cat.name}": {exc}')
                continue
            ids.categories[cat.id] = remote_id
            result.synced += int(changed)

    async def _sync_locations(self, db: AsyncSession, ids: RemoteIds, result: TableResult):
        rows = parents_first(await list_all(db, Location), lambda l: l.id, lambda l: l.parent_id)
        for loc in rows:
            fields = {
                "name": loc.name,
                "description": loc.description,
                "location_type": loc.location_type.value,
                "is_active": loc.is_active,
            }
            if loc.parent_id is None or loc.parent_id in ids.locations:
                fields["parent_id"] = _resolve(ids.locations, loc.parent_id)
            try:
                remote_id, changed = await self._push(
                    "locations", "code", loc.code, loc.updated_at, fields
                )
            except (RemoteError, ValueError) as exc:
                result.errors.append(f'Location "{loc.name}": {exc}')
                continue
            ids.locations[loc.id] = remote_id
            result.synced += int(changed)

    async def _sync_items(self, db: AsyncSession, ids: RemoteIds, result: TableResult):
        for item in await list_all(db, Item):
            fields = {
                "name": item.name,
                "description": item.description,
                "current_stock": item.current_stock,
                "minimum_stock": item.minimum_stock,
                "unit": item.unit,
                "is_active": item.is_active,
                "has_variants": item.has_variants,
            }
            if item.category_id is None or item.category_id in ids.categories:
                fields["category_id"] = _resolve(ids.categories, item.category_id)
            if item.location_id is None or item.location_id in ids.locations:
                fields["location_id"] = _resolve(ids.locations, item.location_id)
            try:
                _, changed = await self._push("items", "code", item.code, item.updated_at, fields)
            except (RemoteError, ValueError) as exc:
                result.errors.append(f'Item "{item.name}": {exc}')
                continue
            result.synced += int(changed)

    async def _record_last_sync(self, db: AsyncSession, report: SyncReport):
        try:
            state = (
                await db.execute(select(SyncState).where(SyncState.stream_name == self.stream_name))
            ).scalar_one_or_none()
            if state is None:
                state = SyncState(stream_name=self.stream_name)
                db.add(state)
            state.last_synced_at = report.finished_at
            state.summary = {
                "synced": report.synced,
                "errors": len(report.errors),
                "scans_synced": report.scans_synced,
                "finished_at": iso(report.finished_at),
            }
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.exception("Could not record last sync time")
            report.errors.append(f"Recording last sync failed: {exc}")
            report.success = False

    async def status(self, db: AsyncSession) -> SyncStatus:
        state = (
            await db.execute(select(SyncState).where(SyncState.stream_name == self.stream_name))
        ).scalar_one_or_none()
        pending = await self.scan_queue.pending_count(db) if self.scan_queue is not None else 0
        return SyncStatus(
            in_progress=self._in_progress,
            online=self.connectivity.online,
            last_synced_at=as_utc(state.last_synced_at) if state else None,
            last_summary=state.summary if state else None,
            pending_scans=pending,
        )

# inventory_edge/domain/scan/service.py
import logging
import re
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from inventory_edge.core.errors import DatabaseIOFailure, RemoteError
from inventory_edge.core.state import ConnectivityState
from inventory_edge.core.timeutils import iso, utcnow
from inventory_edge.db.models import Item, Location, PendingScan
from inventory_edge.db.repositories.ledger import get_item_by_code, get_location_by_code
from inventory_edge.domain.codes.service import ITEM_PREFIX, LOCATION_PREFIXES
from .schemas import DrainResult, ScanData, ScanResponse, ScanState

logger = logging.getLogger(__name__)

NOT_FOUND_ERROR = "Code not found in local database"

_ITEM_CODE = re.compile(rf"^(YIMS:ITEM:|{ITEM_PREFIX}-)")
_LOCATION_CODE = re.compile(
    r"^(YIMS:(BUILDING|ROOM|SHELF|BOX|DRAWER):|(%s)-)" % "|".join(LOCATION_PREFIXES.values())
)


def classify_code(code: str) -> Optional[str]:
    if _ITEM_CODE.match(code):
        return "item"
    if _LOCATION_CODE.match(code):
        return "location"
    return None


class ScanQueue:
    """Serves device scans from the local ledger and queues them for audit.

    A scan that matches an active item or location is answered locally and
    recorded as a PendingScan; unknown codes are answered with not-found
    and not recorded. Every answer is flagged ``offline`` since it comes from
    the local store. ``drain_pending`` delivers queued scans to the remote
    ``scan_logs`` table one row at a time, and only while the node is online.
    """

    def __init__(self, connectivity: ConnectivityState, remote=None):
        self.connectivity = connectivity
        self.remote = remote

    async def serve_scan(self, db: AsyncSession, code: str, device_id: str) -> ScanResponse:
        timestamp = utcnow()
        # answered from the local store, whatever the uplink is doing
        offline = True
        code = code.strip()
        state = ScanState.RECEIVED

        try:
            state, code_type, data = await self._lookup(db, code)
            logger.debug("Scan %s %s as %s", code, ScanState.LOOKED_UP.value, state.value)
            if state == ScanState.FOUND:
                db.add(PendingScan(code=code, code_type=code_type, device_id=device_id, scanned_at=timestamp))
                await db.commit()
                state = ScanState.QUEUED
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Local scan of %s from %s failed", code, device_id)
            return ScanResponse(success=False, error="Database error", timestamp=iso(timestamp), offline=offline)

        logger.info("Scan %s from %s: %s", code, device_id, state.value)
        if state != ScanState.QUEUED:
            return ScanResponse(success=False, error=NOT_FOUND_ERROR, timestamp=iso(timestamp), offline=offline)
        return ScanResponse(success=True, type=code_type, data=data, timestamp=iso(timestamp), offline=offline)

    async def _lookup(self, db: AsyncSession, code: str):
        code_type = classify_code(code)

        if code_type == "item":
            item: Optional[Item] = await get_item_by_code(db, code)
            if item is not None and item.is_active:
                return ScanState.FOUND, "item", ScanData(
                    name=item.name,
                    code=item.code,
                    current_stock=item.current_stock,
                    minimum_stock=item.minimum_stock,
                    unit=item.unit,
                )

        if code_type == "location":
            location: Optional[Location] = await get_location_by_code(db, code)
            if location is not None and location.is_active:
                return ScanState.FOUND, "location", ScanData(
                    name=location.name,
                    code=location.code,
                    location_type=location.location_type.value,
                )

        return ScanState.NOT_FOUND, code_type, None

    async def pending_count(self, db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count()).select_from(PendingScan).where(PendingScan.synced.is_(False))
        )
        return result.scalar_one()

    async def drain_pending(self, db: AsyncSession, remote=None) -> DrainResult:
        """Deliver unsynced scans, deleting each row only after its own ack.

        A failed delivery leaves its row pending and the loop moves on, so a
        later call retries exactly the rows that never got through.
        """
        remote = remote or self.remote
        outcome = DrainResult()
        if remote is None:
            outcome.errors.append("No remote store configured")
            return outcome
        if not self.connectivity.online:
            logger.info("Offline, leaving scans pending")
            return outcome

        try:
            rows = (
                await db.execute(
                    select(PendingScan)
                    .where(PendingScan.synced.is_(False))
                    .order_by(PendingScan.scanned_at, PendingScan.id)
                )
            ).scalars().all()
        except SQLAlchemyError as exc:
            logger.exception("Could not read pending scans")
            raise DatabaseIOFailure(str(exc)) from exc

        for scan in rows:
            scan_id = scan.id
            try:
                await remote.insert(
                    "scan_logs",
                    {
                        "code_scanned": scan.code,
                        "code_type": scan.code_type,
                        "action_taken": f"esp32_scan:{scan.device_id}",
                        "created_at": iso(scan.scanned_at),
                    },
                )
            except RemoteError as exc:
                outcome.failed += 1
                outcome.errors.append(f"Scan {scan.code} from {scan.device_id}: {exc}")
                logger.warning("Delivery of scan %s failed: %s", scan_id, exc)
                continue

            try:
                await db.delete(scan)
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.exception("Scan %s delivered but could not be cleared locally", scan_id)
                raise DatabaseIOFailure(str(exc)) from exc
            logger.debug("Scan %s %s", scan_id, ScanState.SYNCED.value)
            outcome.synced += 1

        if outcome.synced or outcome.failed:
            logger.info("Drained scans: %s synced, %s failed", outcome.synced, outcome.failed)
        return outcome

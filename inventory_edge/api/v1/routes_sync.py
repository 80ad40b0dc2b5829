# inventory_edge/api/v1/routes_sync.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_edge.api.deps import get_sync_engine
from inventory_edge.db.base import get_db
from inventory_edge.domain.sync.schemas import SyncReport, SyncStatus
from inventory_edge.domain.sync.service import SyncEngine

router = APIRouter(prefix="/api/v1/sync", tags=["sync"])


@router.post("", response_model=SyncReport)
async def run_sync_endpoint(
    db: AsyncSession = Depends(get_db),
    engine: SyncEngine = Depends(get_sync_engine),
):
    return await engine.run(db)


@router.get("/status", response_model=SyncStatus)
async def sync_status_endpoint(
    db: AsyncSession = Depends(get_db),
    engine: SyncEngine = Depends(get_sync_engine),
):
    return await engine.status(db)

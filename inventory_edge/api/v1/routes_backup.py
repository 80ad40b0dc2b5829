# inventory_edge/api/v1/routes_backup.py
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_edge.db.base import get_db
from inventory_edge.domain.backup.schemas import ImportMode, ImportResult
from inventory_edge.domain.backup.service import (
    export_snapshot,
    import_snapshot,
    record_counts,
    write_snapshot_file,
)

router = APIRouter(prefix="/api/v1/backup", tags=["backup"])


@router.get("/export")
async def export_endpoint(db: AsyncSession = Depends(get_db)):
    snapshot = await export_snapshot(db)
    return snapshot.to_json_dict()


@router.post("/import", response_model=ImportResult)
async def import_endpoint(
    payload: Dict[str, Any] = Body(...),
    mode: ImportMode = Query("merge"),
    db: AsyncSession = Depends(get_db),
):
    return await import_snapshot(db, payload, mode)


@router.get("/counts")
async def counts_endpoint(db: AsyncSession = Depends(get_db)):
    return await record_counts(db)


@router.post("/save")
async def save_endpoint(db: AsyncSession = Depends(get_db)):
    snapshot = await export_snapshot(db)
    path = write_snapshot_file(snapshot)
    return {"path": str(path), "counts": await record_counts(db)}

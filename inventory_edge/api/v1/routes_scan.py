# inventory_edge/api/v1/routes_scan.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_edge.api.deps import get_scan_queue
from inventory_edge.core.config import settings
from inventory_edge.db.base import get_db
from inventory_edge.domain.scan.schemas import ScanRequest, ScanResponse
from inventory_edge.domain.scan.service import ScanQueue

router = APIRouter(prefix="/api/scan", tags=["scan"])


def check_device_key(x_device_api_key: Optional[str] = Header(default=None)):
    if settings.DEVICE_API_KEY and x_device_api_key != settings.DEVICE_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: invalid device API key",
        )


@router.post("", response_model=ScanResponse, dependencies=[Depends(check_device_key)])
async def scan_endpoint(
    payload: ScanRequest,
    db: AsyncSession = Depends(get_db),
    queue: ScanQueue = Depends(get_scan_queue),
):
    return await queue.serve_scan(db, payload.code, payload.device_id)


@router.get("/pending")
async def pending_scans_endpoint(
    db: AsyncSession = Depends(get_db),
    queue: ScanQueue = Depends(get_scan_queue),
):
    return {"pending": await queue.pending_count(db)}

# inventory_edge/api/v1/routes_connectivity.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_edge.api.deps import get_connectivity_monitor
from inventory_edge.db.base import get_db
from inventory_edge.domain.sync.monitor import ConnectivityMonitor
from inventory_edge.domain.sync.schemas import ConnectivityIn, ConnectivityOut

router = APIRouter(prefix="/api/v1/connectivity", tags=["connectivity"])


def _state_out(monitor: ConnectivityMonitor, report=None) -> ConnectivityOut:
    state = monitor.connectivity
    return ConnectivityOut(
        online=state.online,
        offline_mode=state.offline_mode,
        serving_offline=state.serving_offline,
        sync=report,
    )


@router.get("", response_model=ConnectivityOut)
async def connectivity_endpoint(monitor: ConnectivityMonitor = Depends(get_connectivity_monitor)):
    return _state_out(monitor)


@router.put("", response_model=ConnectivityOut)
async def update_connectivity_endpoint(
    payload: ConnectivityIn,
    db: AsyncSession = Depends(get_db),
    monitor: ConnectivityMonitor = Depends(get_connectivity_monitor),
):
    report = await monitor.update(payload.online, db=db)
    return _state_out(monitor, report)

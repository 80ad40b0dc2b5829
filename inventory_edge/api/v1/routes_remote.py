# inventory_edge/api/v1/routes_remote.py
"""Read-through browsing of the remote catalogue while the node is online."""
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query

from inventory_edge.api.deps import get_connectivity_monitor, get_remote
from inventory_edge.core.errors import RemoteUnavailable
from inventory_edge.domain.sync.monitor import ConnectivityMonitor
from inventory_edge.remote.client import RemoteStore

router = APIRouter(prefix="/api/v1/remote", tags=["remote"])


def require_online(monitor: ConnectivityMonitor = Depends(get_connectivity_monitor)):
    if not monitor.connectivity.online:
        raise RemoteUnavailable("Remote store is unreachable; use the local endpoints")


@router.get("/items", response_model=List[Dict[str, Any]], dependencies=[Depends(require_online)])
async def remote_items_endpoint(
    cursor: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    direction: Literal["next", "prev"] = "next",
    category_id: Optional[str] = None,
    location_id: Optional[str] = None,
    remote: RemoteStore = Depends(get_remote),
):
    return await remote.get_items_paginated(
        cursor=cursor,
        limit=limit,
        direction=direction,
        category_id=category_id,
        location_id=location_id,
    )


@router.get("/items/search", response_model=List[Dict[str, Any]], dependencies=[Depends(require_online)])
async def remote_search_endpoint(
    q: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    remote: RemoteStore = Depends(get_remote),
):
    return await remote.search_items(q, limit=limit, offset=offset)

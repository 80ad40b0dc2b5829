# inventory_edge/api/v1/routes_entities.py
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_edge.db.base import get_db
from inventory_edge.domain.ledger.schemas import DashboardStats, EntityKind, EntityOut
from inventory_edge.domain.ledger.service import (
    dashboard_stats,
    find_item_by_code,
    find_location_by_code,
    search_items,
    soft_delete,
    upsert_entity,
)

router = APIRouter(prefix="/api/v1", tags=["entities"])


def _entity_out(kind: EntityKind, row) -> EntityOut:
    return EntityOut(
        id=row.id,
        kind=kind,
        code=getattr(row, "code", None),
        name=getattr(row, "name", None) or getattr(row, "variant_name", ""),
        is_active=row.is_active,
        current_stock=getattr(row, "current_stock", None),
    )


@router.post("/entities/{kind}", response_model=EntityOut)
async def upsert_endpoint(
    kind: EntityKind,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    row = await upsert_entity(db, kind, payload)
    return _entity_out(kind, row)


@router.delete("/entities/{kind}/{entity_id}", response_model=EntityOut)
async def delete_endpoint(kind: EntityKind, entity_id: int, db: AsyncSession = Depends(get_db)):
    row = await soft_delete(db, kind, entity_id)
    return _entity_out(kind, row)


@router.get("/entities/items/by-code/{code}", response_model=EntityOut)
async def item_by_code_endpoint(code: str, db: AsyncSession = Depends(get_db)):
    item = await find_item_by_code(db, code)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return _entity_out("item", item)


@router.get("/entities/locations/by-code/{code}", response_model=EntityOut)
async def location_by_code_endpoint(code: str, db: AsyncSession = Depends(get_db)):
    location = await find_location_by_code(db, code)
    if location is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return _entity_out("location", location)


@router.get("/entities/items/search")
async def search_endpoint(q: str, db: AsyncSession = Depends(get_db)):
    return [_entity_out("item", item) for item in await search_items(db, q)]


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard_endpoint(db: AsyncSession = Depends(get_db)):
    return await dashboard_stats(db)

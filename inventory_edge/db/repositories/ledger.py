# inventory_edge/db/repositories/ledger.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from inventory_edge.db.models import (
    Category,
    Item,
    Location,
    LocationType,
    StockTransaction,
)


async def get_item_by_code(db: AsyncSession, code: str) -> Optional[Item]:
    result = await db.execute(select(Item).where(Item.code == code))
    return result.scalar_one_or_none()


async def get_location_by_code(db: AsyncSession, code: str) -> Optional[Location]:
    result = await db.execute(select(Location).where(Location.code == code))
    return result.scalar_one_or_none()


async def get_category_by_name(
    db: AsyncSession,
    name: str,
    active_only: bool = False,
) -> Optional[Category]:
    stmt = select(Category).where(Category.name == name)
    if active_only:
        stmt = stmt.where(Category.is_active.is_(True))
    result = await db.execute(stmt.order_by(Category.id).limit(1))
    return result.scalar_one_or_none()


async def count_items(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Item))
    return result.scalar_one()


async def count_locations_of_type(db: AsyncSession, location_type: LocationType) -> int:
    result = await db.execute(
        select(func.count()).select_from(Location).where(Location.location_type == location_type)
    )
    return result.scalar_one()


async def count_active_items_in_category(db: AsyncSession, category_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Item)
        .where(Item.category_id == category_id, Item.is_active.is_(True))
    )
    return result.scalar_one()


async def count_active_items_in_location(db: AsyncSession, location_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Item)
        .where(Item.location_id == location_id, Item.is_active.is_(True))
    )
    return result.scalar_one()


async def count_active_child_locations(db: AsyncSession, location_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Location)
        .where(Location.parent_id == location_id, Location.is_active.is_(True))
    )
    return result.scalar_one()


async def get_transactions_for_target(
    db: AsyncSession,
    item_id: Optional[int] = None,
    variant_id: Optional[int] = None,
    limit: int = 50,
) -> List[StockTransaction]:
    stmt = select(StockTransaction)
    if variant_id is not None:
        stmt = stmt.where(StockTransaction.variant_id == variant_id)
    else:
        stmt = stmt.where(StockTransaction.item_id == item_id)
    result = await db.execute(
        stmt.order_by(StockTransaction.created_at.desc(), StockTransaction.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def get_transactions_between(
    db: AsyncSession,
    start: datetime,
    end: datetime,
) -> List[StockTransaction]:
    result = await db.execute(
        select(StockTransaction)
        .where(StockTransaction.created_at >= start, StockTransaction.created_at <= end)
        .order_by(StockTransaction.created_at, StockTransaction.id)
    )
    return list(result.scalars().all())


async def search_active_items(db: AsyncSession, query: str, limit: int = 50) -> List[Item]:
    pattern = f"%{query.strip().lower()}%"
    result = await db.execute(
        select(Item)
        .where(Item.is_active.is_(True))
        .where(
            or_(
                func.lower(Item.name).like(pattern),
                func.lower(Item.code).like(pattern),
                func.lower(func.coalesce(Item.description, "")).like(pattern),
            )
        )
        .order_by(func.lower(Item.name))
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_all(db: AsyncSession, model) -> list:
    result = await db.execute(
        select(model).order_by(model.id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


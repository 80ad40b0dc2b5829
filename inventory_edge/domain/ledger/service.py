# inventory_edge/domain/ledger/service.py
import logging
from datetime import timedelta
from typing import List, Optional, Union

from pydantic import BaseModel
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from inventory_edge.core.errors import (
    DatabaseIOFailure,
    DuplicateNaturalKey,
    InsufficientStock,
    InvalidHierarchy,
    NotFoundError,
    ReferentialConflict,
)
from inventory_edge.core.timeutils import utcnow
from inventory_edge.db.models import (
    Category,
    Item,
    ItemVariant,
    Location,
    StockTransaction,
    TransactionType,
)
from inventory_edge.db.repositories.ledger import (
    count_active_child_locations,
    count_active_items_in_category,
    count_active_items_in_location,
    get_category_by_name,
    get_item_by_code,
    get_location_by_code,
    get_transactions_between,
    get_transactions_for_target,
    search_active_items,
)
from inventory_edge.domain.codes.service import next_code
from .schemas import (
    CategoryIn,
    DashboardStats,
    EntityKind,
    ItemIn,
    LocationIn,
    StockTarget,
    VariantIn,
)

logger = logging.getLogger(__name__)

MODELS = {
    "category": Category,
    "location": Location,
    "item": Item,
    "variant": ItemVariant,
}

PAYLOADS = {
    "category": CategoryIn,
    "location": LocationIn,
    "item": ItemIn,
    "variant": VariantIn,
}

# never copied from an update payload: identity, natural code, ledger-owned stock
_IMMUTABLE_ON_UPDATE = {"id", "code", "current_stock"}


def signed_quantity(transaction_type: TransactionType, quantity: int) -> int:
    transaction_type = TransactionType(transaction_type)
    if transaction_type == TransactionType.STOCK_OUT:
        return -quantity
    return quantity


async def record_stock_mutation(
    db: AsyncSession,
    target: StockTarget,
    transaction_type: TransactionType,
    quantity: int,
    performed_by: str,
    notes: Optional[str] = None,
    recipient: Optional[str] = None,
    location_id: Optional[int] = None,
    allow_negative: bool = True,
) -> StockTransaction:
    """Move stock on an item or variant and append the ledger entry.

    The stock write and the transaction insert share one local database
    transaction: either both land or neither does. The new balance is
    computed by the database (``current_stock + delta``) so two mutations on
    the same target cannot lose an update.

    Negative results are allowed unless ``allow_negative`` is False, in which
    case the floor is part of the UPDATE itself and a movement that would
    overdraw raises InsufficientStock. Other policy checks belong to the
    caller (see ``policy.py``).
    """
    transaction_type = TransactionType(transaction_type)
    delta = signed_quantity(transaction_type, quantity)
    model = ItemVariant if target.variant_id is not None else Item

    try:
        stmt = update(model).where(model.id == target.target_id)
        if not allow_negative and delta < 0:
            stmt = stmt.where(model.current_stock + delta >= 0)
        result = await db.execute(
            stmt.values(current_stock=model.current_stock + delta, updated_at=utcnow())
            .returning(model.current_stock)
        )
        balance_after = result.scalar_one_or_none()
        if balance_after is None:
            await db.rollback()
            available = (
                await db.execute(select(model.current_stock).where(model.id == target.target_id))
            ).scalar_one_or_none()
            if available is None:
                raise NotFoundError(f"{target.kind.capitalize()} {target.target_id} not found")
            raise InsufficientStock(available, -delta)

        txn = StockTransaction(
            item_id=target.item_id,
            variant_id=target.variant_id,
            transaction_type=transaction_type,
            quantity=delta,
            balance_before=balance_after - delta,
            balance_after=balance_after,
            location_id=location_id,
            notes=notes,
            recipient=recipient,
            performed_by=performed_by,
        )
        db.add(txn)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Stock mutation on %s %s failed", target.kind, target.target_id)
        raise DatabaseIOFailure(str(exc)) from exc

    await db.refresh(txn)
    logger.info(
        "%s %s on %s %s: %s -> %s",
        transaction_type.value,
        delta,
        target.kind,
        target.target_id,
        txn.balance_before,
        txn.balance_after,
    )
    return txn


async def list_transactions(
    db: AsyncSession,
    target: StockTarget,
    limit: int = 50,
) -> List[StockTransaction]:
    return await get_transactions_for_target(
        db, item_id=target.item_id, variant_id=target.variant_id, limit=limit
    )


async def transactions_between(db: AsyncSession, start, end) -> List[StockTransaction]:
    return await get_transactions_between(db, start, end)


async def get_entity(db: AsyncSession, kind: EntityKind, entity_id: int):
    row = await db.get(MODELS[kind], entity_id)
    if row is None:
        raise NotFoundError(f"{kind.capitalize()} {entity_id} not found")
    return row


async def _ensure_acyclic(db: AsyncSession, location_id: Optional[int], parent_id: Optional[int]):
    if parent_id is None:
        return
    if location_id is not None and parent_id == location_id:
        raise InvalidHierarchy("A location cannot be its own parent")

    seen = set()
    current = await db.get(Location, parent_id)
    if current is None:
        raise InvalidHierarchy(f"Parent location {parent_id} not found")
    while current is not None:
        if location_id is not None and current.id == location_id:
            raise InvalidHierarchy(f"Location {location_id} would become its own ancestor")
        if current.id in seen:
            raise InvalidHierarchy(f"Location tree already contains a cycle at {current.id}")
        seen.add(current.id)
        current = await db.get(Location, current.parent_id) if current.parent_id else None


async def _ensure_exists(db: AsyncSession, model, entity_id: Optional[int], label: str):
    if entity_id is not None and await db.get(model, entity_id) is None:
        raise NotFoundError(f"{label} {entity_id} not found")


def _apply(row, payload: BaseModel, creating: bool):
    fields = payload.model_dump() if creating else payload.model_dump(exclude_unset=True)
    for key, value in fields.items():
        if key == "id" or (not creating and key in _IMMUTABLE_ON_UPDATE):
            continue
        setattr(row, key, value)


async def _load_for_update(db: AsyncSession, kind: EntityKind, payload) -> Optional[object]:
    if payload.id is None:
        return None
    return await get_entity(db, kind, payload.id)


async def _upsert_category(db: AsyncSession, payload: CategoryIn) -> Category:
    row = await _load_for_update(db, "category", payload)
    name = payload.name if row is None or "name" in payload.model_fields_set else row.name
    clash = await get_category_by_name(db, name, active_only=True)
    if clash is not None and (row is None or clash.id != row.id):
        raise DuplicateNaturalKey("category", "name", name)

    if row is None:
        row = Category()
        _apply(row, payload, creating=True)
        db.add(row)
    else:
        _apply(row, payload, creating=False)
    return row


async def _upsert_location(db: AsyncSession, payload: LocationIn) -> Location:
    row = await _load_for_update(db, "location", payload)
    parent_id = payload.parent_id if row is None or "parent_id" in payload.model_fields_set else row.parent_id
    await _ensure_acyclic(db, row.id if row is not None else None, parent_id)

    if row is None:
        code = payload.code or await next_code(db, "location", payload.location_type)
        if await get_location_by_code(db, code) is not None:
            raise DuplicateNaturalKey("location", "code", code)
        row = Location(code=code)
        _apply(row, payload, creating=True)
        row.code = code
        db.add(row)
    else:
        _apply(row, payload, creating=False)
    return row


async def _upsert_item(db: AsyncSession, payload: ItemIn) -> Item:
    row = await _load_for_update(db, "item", payload)
    await _ensure_exists(db, Category, payload.category_id, "Category")
    await _ensure_exists(db, Location, payload.location_id, "Location")

    if row is None:
        code = payload.code or await next_code(db, "item")
        if await get_item_by_code(db, code) is not None:
            raise DuplicateNaturalKey("item", "code", code)
        row = Item(code=code, has_variants=False)
        _apply(row, payload, creating=True)
        row.code = code
        db.add(row)
    else:
        _apply(row, payload, creating=False)
    return row


async def _upsert_variant(db: AsyncSession, payload: VariantIn) -> ItemVariant:
    row = await _load_for_update(db, "variant", payload)
    parent = await db.get(Item, payload.parent_item_id)
    if parent is None:
        raise NotFoundError(f"Item {payload.parent_item_id} not found")

    if row is None:
        row = ItemVariant()
        _apply(row, payload, creating=True)
        db.add(row)
        if not parent.has_variants:
            parent.has_variants = True
    else:
        _apply(row, payload, creating=False)
    return row


_UPSERTS = {
    "category": _upsert_category,
    "location": _upsert_location,
    "item": _upsert_item,
    "variant": _upsert_variant,
}


async def upsert_entity(
    db: AsyncSession,
    kind: EntityKind,
    payload: Union[BaseModel, dict],
):
    """Create the entity when payload has no id, otherwise update it.

    Items and locations get a generated code when none is supplied. On
    update, ``current_stock`` is ignored: stock only moves through
    ``record_stock_mutation``.
    """
    if kind not in _UPSERTS:
        raise ValueError(f"Unknown entity kind {kind!r}")
    if isinstance(payload, dict):
        payload = PAYLOADS[kind].model_validate(payload)

    try:
        row = await _UPSERTS[kind](db, payload)
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        # lost a code race against another writer on this device
        code = getattr(payload, "code", None) or "<generated>"
        raise DuplicateNaturalKey(kind, "code", code) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Upsert of %s failed", kind)
        raise DatabaseIOFailure(str(exc)) from exc

    await db.refresh(row)
    return row


async def soft_delete(db: AsyncSession, kind: EntityKind, entity_id: int):
    """Flip the active flag off.

    Categories with active items, and locations with active items or active
    child locations, are refused with ReferentialConflict.
    """
    row = await get_entity(db, kind, entity_id)

    if kind == "category":
        dependents = await count_active_items_in_category(db, entity_id)
        if dependents:
            logger.warning("Refusing to delete category %s: %s items", entity_id, dependents)
            raise ReferentialConflict("category", entity_id, dependents, "items")
    elif kind == "location":
        dependents = await count_active_items_in_location(db, entity_id)
        if dependents:
            logger.warning("Refusing to delete location %s: %s items", entity_id, dependents)
            raise ReferentialConflict("location", entity_id, dependents, "items")
        children = await count_active_child_locations(db, entity_id)
        if children:
            logger.warning("Refusing to delete location %s: %s child locations", entity_id, children)
            raise ReferentialConflict("location", entity_id, children, "child locations")

    row.is_active = False
    row.updated_at = utcnow()
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Soft delete of %s %s failed", kind, entity_id)
        raise DatabaseIOFailure(str(exc)) from exc
    await db.refresh(row)
    return row


async def find_item_by_code(db: AsyncSession, code: str) -> Optional[Item]:
    return await get_item_by_code(db, code)


async def find_location_by_code(db: AsyncSession, code: str) -> Optional[Location]:
    return await get_location_by_code(db, code)


async def search_items(db: AsyncSession, query: str, limit: int = 50) -> List[Item]:
    return await search_active_items(db, query, limit=limit)


async def dashboard_stats(db: AsyncSession) -> DashboardStats:
    total_items = (
        await db.execute(select(func.count()).select_from(Item).where(Item.is_active.is_(True)))
    ).scalar_one()
    low_stock = (
        await db.execute(
            select(func.count())
            .select_from(Item)
            .where(Item.is_active.is_(True), Item.current_stock < Item.minimum_stock)
        )
    ).scalar_one()
    total_locations = (
        await db.execute(select(func.count()).select_from(Location).where(Location.is_active.is_(True)))
    ).scalar_one()
    since = utcnow() - timedelta(days=1)
    recent = (
        await db.execute(
            select(func.count()).select_from(StockTransaction).where(StockTransaction.created_at > since)
        )
    ).scalar_one()
    return DashboardStats(
        total_items=total_items,
        low_stock_count=low_stock,
        total_locations=total_locations,
        recent_transactions=recent,
    )

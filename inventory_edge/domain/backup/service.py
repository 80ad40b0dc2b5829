# inventory_edge/domain/backup/service.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from inventory_edge.core.config import settings
from inventory_edge.core.timeutils import iso, utcnow
from inventory_edge.db.models import Category, Item, ItemVariant, Location, StockTransaction
from inventory_edge.db.repositories.ledger import (
    get_category_by_name,
    get_item_by_code,
    get_location_by_code,
    list_all,
)
from inventory_edge.domain.ledger.tree import parents_first
from .schemas import (
    EXPORT_VERSION,
    CategoryRow,
    ImportCounts,
    ImportMode,
    ImportResult,
    ItemRow,
    ItemVariantRow,
    LocationRow,
    Snapshot,
    SnapshotData,
    StockTransactionRow,
    ValidationFailure,
    ValidationResult,
)

logger = logging.getLogger(__name__)

_TABLES = (
    ("categories", Category, CategoryRow),
    ("locations", Location, LocationRow),
    ("items", Item, ItemRow),
    ("itemVariants", ItemVariant, ItemVariantRow),
    ("stockTransactions", StockTransaction, StockTransactionRow),
)


async def export_snapshot(db: AsyncSession) -> Snapshot:
    data = {}
    for key, model, row_schema in _TABLES:
        rows = await list_all(db, model)
        data[key] = [
            row_schema.model_validate(row).model_dump(mode="json", by_alias=True)
            for row in rows
        ]
    snapshot = Snapshot(
        version=EXPORT_VERSION,
        exportedAt=iso(utcnow()),
        data=SnapshotData.model_validate(data),
    )
    logger.info("Exported snapshot: %s", {k: len(v) for k, v in data.items()})
    return snapshot


def validate_snapshot(candidate: Any) -> ValidationResult:
    """Structural check of an import payload. Never raises."""
    if isinstance(candidate, Snapshot):
        return candidate
    if not isinstance(candidate, dict):
        return ValidationFailure(error="Invalid data format")
    if not isinstance(candidate.get("version"), str) or not candidate["version"]:
        return ValidationFailure(error="Missing or invalid version")
    if not isinstance(candidate.get("exportedAt"), str) or not candidate["exportedAt"]:
        return ValidationFailure(error="Missing or invalid export date")

    data = candidate.get("data")
    if not isinstance(data, dict):
        return ValidationFailure(error="Missing data object")
    for table in ("categories", "locations", "items"):
        if not isinstance(data.get(table), list):
            return ValidationFailure(error=f"Missing or invalid {table} array")
    for table in ("itemVariants", "stockTransactions"):
        if table in data and not isinstance(data[table], list):
            return ValidationFailure(error=f"Invalid {table} array")

    for table, _, _ in _TABLES:
        for row in data.get(table) or []:
            if not isinstance(row, dict):
                return ValidationFailure(error=f"Rows of {table} must be objects")

    try:
        return Snapshot.model_validate(candidate)
    except ValidationError as exc:
        return ValidationFailure(error=str(exc))


def _parse(schema: Type[BaseModel], raw: Dict[str, Any]) -> Optional[BaseModel]:
    try:
        return schema.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Skipping malformed %s row: %s", schema.__name__, exc.errors()[:1])
        return None


async def _insert(db: AsyncSession, row) -> bool:
    try:
        async with db.begin_nested():
            db.add(row)
    except SQLAlchemyError as exc:
        logger.warning("Skipping %s row that failed to insert: %s", type(row).__name__, exc)
        return False
    return True


async def clear_ledger_tables(db: AsyncSession):
    await db.execute(delete(StockTransaction))
    await db.execute(delete(ItemVariant))
    await db.execute(delete(Item))
    await db.execute(delete(Location))
    await db.execute(delete(Category))


async def import_snapshot(
    db: AsyncSession,
    candidate: Union[Snapshot, Dict[str, Any]],
    mode: ImportMode = "merge",
) -> ImportResult:
    """Load a snapshot into the local store.

    replace: wipe the ledger tables, then insert every row.
    merge: skip categories whose name, and locations/items whose code,
    already exist; existing categories and locations still serve as targets
    when remapping references.

    Variants and transactions are only imported when their parent's new
    local id is known; rows that cannot be resolved or fail to insert are
    dropped. The returned counts are rows actually inserted.
    """
    if mode not in ("replace", "merge"):
        return ImportResult(success=False, error=f"Unknown import mode {mode!r}")

    validated = validate_snapshot(candidate)
    if isinstance(validated, ValidationFailure):
        return ImportResult(success=False, error=validated.error)
    data = validated.data
    merge = mode == "merge"
    counts = ImportCounts()

    try:
        if mode == "replace":
            await clear_ledger_tables(db)

        category_ids: Dict[int, int] = {}
        for raw in data.categories:
            row = _parse(CategoryRow, raw)
            if row is None:
                continue
            existing = await get_category_by_name(db, row.name) if merge else None
            if existing is not None:
                if row.id is not None:
                    category_ids[row.id] = existing.id
                continue
            category = Category(**row.model_dump(exclude={"id"}))
            if await _insert(db, category):
                counts.categories += 1
                if row.id is not None:
                    category_ids[row.id] = category.id

        location_ids: Dict[int, int] = {}
        location_rows = [r for r in (_parse(LocationRow, raw) for raw in data.locations) if r is not None]
        for row in parents_first(location_rows, lambda r: r.id, lambda r: r.parent_id):
            existing = await get_location_by_code(db, row.code) if merge else None
            if existing is not None:
                if row.id is not None:
                    location_ids[row.id] = existing.id
                continue
            location = Location(**row.model_dump(exclude={"id", "parent_id"}))
            location.parent_id = location_ids.get(row.parent_id) if row.parent_id is not None else None
            if await _insert(db, location):
                counts.locations += 1
                if row.id is not None:
                    location_ids[row.id] = location.id

        item_ids: Dict[int, int] = {}
        for raw in data.items:
            row = _parse(ItemRow, raw)
            if row is None:
                continue
            if merge and await get_item_by_code(db, row.code) is not None:
                continue
            item = Item(**row.model_dump(exclude={"id", "category_id", "location_id"}))
            item.category_id = category_ids.get(row.category_id) if row.category_id is not None else None
            item.location_id = location_ids.get(row.location_id) if row.location_id is not None else None
            if await _insert(db, item):
                counts.items += 1
                if row.id is not None:
                    item_ids[row.id] = item.id

        variant_ids: Dict[int, int] = {}
        for raw in data.item_variants:
            row = _parse(ItemVariantRow, raw)
            if row is None or row.parent_item_id not in item_ids:
                continue
            variant = ItemVariant(**row.model_dump(exclude={"id", "parent_item_id"}))
            variant.parent_item_id = item_ids[row.parent_item_id]
            if await _insert(db, variant):
                counts.item_variants += 1
                if row.id is not None:
                    variant_ids[row.id] = variant.id

        for raw in data.stock_transactions:
            row = _parse(StockTransactionRow, raw)
            if row is None:
                continue
            fields = row.model_dump(exclude={"id", "item_id", "variant_id", "location_id"})
            if row.variant_id is not None:
                if row.variant_id not in variant_ids:
                    continue
                txn = StockTransaction(variant_id=variant_ids[row.variant_id], **fields)
            else:
                if row.item_id not in item_ids:
                    continue
                txn = StockTransaction(item_id=item_ids[row.item_id], **fields)
            txn.location_id = location_ids.get(row.location_id) if row.location_id is not None else None
            if await _insert(db, txn):
                counts.stock_transactions += 1

        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Import (%s) failed", mode)
        return ImportResult(success=False, counts=ImportCounts(), error=str(exc))

    logger.info("Imported snapshot (%s): %s", mode, counts.model_dump(by_alias=True))
    return ImportResult(success=True, counts=counts)


async def record_counts(db: AsyncSession) -> Dict[str, int]:
    counts = {}
    for key, model, _ in _TABLES:
        counts[key] = (await db.execute(select(func.count()).select_from(model))).scalar_one()
    return counts


def backup_filename(day: Optional[str] = None) -> str:
    day = day or utcnow().date().isoformat()
    return f"inventory-backup-{day}.json"


def write_snapshot_file(snapshot: Snapshot, directory: Optional[Union[str, Path]] = None) -> Path:
    directory = Path(directory or settings.BACKUP_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / backup_filename(snapshot.exported_at[:10])
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot.to_json_dict(), f, indent=2)
    return path


def read_snapshot_file(path: Union[str, Path]) -> ValidationResult:
    try:
        with open(path, "r", encoding="utf-8") as f:
            candidate = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        return ValidationFailure(error=f"Could not read snapshot: {exc}")
    return validate_snapshot(candidate)

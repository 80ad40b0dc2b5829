import pytest

from inventory_edge.core.errors import (
    DuplicateNaturalKey,
    InvalidHierarchy,
    NotFoundError,
    ReferentialConflict,
)
from inventory_edge.db.models import Category, Item
from inventory_edge.domain.codes.service import next_code
from inventory_edge.domain.ledger.schemas import ItemIn, StockTarget
from inventory_edge.domain.ledger.service import (
    dashboard_stats,
    find_item_by_code,
    record_stock_mutation,
    search_items,
    soft_delete,
    upsert_entity,
)


async def test_item_codes_follow_item_count(db):
    first = await upsert_entity(db, "item", {"name": "Screwdriver"})
    second = await upsert_entity(db, "item", ItemIn(name="Hammer"))
    assert (first.code, second.code) == ("ITM-00001", "ITM-00002")


async def test_location_codes_are_counted_per_type(db):
    bld = await upsert_entity(db, "location", {"name": "Main", "location_type": "building"})
    room = await upsert_entity(db, "location", {"name": "Lab", "location_type": "room", "parent_id": bld.id})
    bld2 = await upsert_entity(db, "location", {"name": "Annex", "location_type": "building"})
    assert [bld.code, room.code, bld2.code] == ["BLD-0001", "ROM-0001", "BLD-0002"]


async def test_next_code_is_not_reserved_until_insert(db):
    # two callers that read the count before either writes get the same code
    assert await next_code(db, "item") == await next_code(db, "item") == "ITM-00001"


async def test_next_code_rejects_unknown_kind(db):
    with pytest.raises(ValueError):
        await next_code(db, "category")
    with pytest.raises(ValueError):
        await next_code(db, "location")


async def test_duplicate_item_code_is_rejected(db):
    await upsert_entity(db, "item", {"name": "A", "code": "ITM-00002"})
    with pytest.raises(DuplicateNaturalKey):
        await upsert_entity(db, "item", {"name": "B"})


async def test_category_names_unique_among_active(db):
    tools = await upsert_entity(db, "category", {"name": "Tools"})
    with pytest.raises(DuplicateNaturalKey):
        await upsert_entity(db, "category", {"name": "Tools"})

    await soft_delete(db, "category", tools.id)
    again = await upsert_entity(db, "category", {"name": "Tools"})
    assert again.id != tools.id


async def test_update_ignores_current_stock(db):
    item = await upsert_entity(db, "item", {"name": "Cable", "current_stock": 3})
    updated = await upsert_entity(db, "item", {"id": item.id, "name": "USB cable", "current_stock": 99})
    assert updated.name == "USB cable"
    assert updated.current_stock == 3
    assert updated.code == item.code


async def test_creating_variant_marks_parent(db):
    item = await upsert_entity(db, "item", {"name": "T-shirt"})
    await upsert_entity(db, "variant", {"parent_item_id": item.id, "variant_name": "M"})
    await db.refresh(item)
    assert item.has_variants is True


async def test_item_with_unknown_category_is_rejected(db):
    with pytest.raises(NotFoundError):
        await upsert_entity(db, "item", {"name": "Orphan", "category_id": 42})


async def test_delete_category_with_active_item_is_blocked(db):
    cat = await upsert_entity(db, "category", {"name": "Electronics"})
    await upsert_entity(db, "item", {"name": "Arduino", "category_id": cat.id})

    with pytest.raises(ReferentialConflict) as exc_info:
        await soft_delete(db, "category", cat.id)

    assert exc_info.value.dependents == 1
    assert (await db.get(Category, cat.id)).is_active is True


async def test_delete_category_after_items_are_deleted(db):
    cat = await upsert_entity(db, "category", {"name": "Electronics"})
    item = await upsert_entity(db, "item", {"name": "Arduino", "category_id": cat.id})
    await soft_delete(db, "item", item.id)

    deleted = await soft_delete(db, "category", cat.id)
    assert deleted.is_active is False
    # soft delete keeps the row
    assert await db.get(Item, item.id) is not None


async def test_delete_location_with_children_is_blocked(db):
    bld = await upsert_entity(db, "location", {"name": "Main", "location_type": "building"})
    await upsert_entity(db, "location", {"name": "Lab", "location_type": "room", "parent_id": bld.id})

    with pytest.raises(ReferentialConflict) as exc_info:
        await soft_delete(db, "location", bld.id)
    assert exc_info.value.dependent_kind == "child locations"


async def test_location_cycles_are_rejected(db):
    a = await upsert_entity(db, "location", {"name": "A", "location_type": "building"})
    b = await upsert_entity(db, "location", {"name": "B", "location_type": "room", "parent_id": a.id})
    c = await upsert_entity(db, "location", {"name": "C", "location_type": "shelf", "parent_id": b.id})

    with pytest.raises(InvalidHierarchy):
        await upsert_entity(db, "location", {"id": a.id, "name": "A", "location_type": "building", "parent_id": c.id})
    with pytest.raises(InvalidHierarchy):
        await upsert_entity(db, "location", {"id": b.id, "name": "B", "location_type": "room", "parent_id": b.id})


async def test_missing_parent_location_is_rejected(db):
    with pytest.raises(InvalidHierarchy):
        await upsert_entity(db, "location", {"name": "Box", "location_type": "box", "parent_id": 7})


async def test_search_and_lookup(db):
    await upsert_entity(db, "item", {"name": "Soldering iron", "description": "60W"})
    gone = await upsert_entity(db, "item", {"name": "Solder wick"})
    await soft_delete(db, "item", gone.id)

    found = await search_items(db, "SOLDER")
    assert [i.name for i in found] == ["Soldering iron"]
    assert (await find_item_by_code(db, "ITM-00001")).name == "Soldering iron"
    assert await find_item_by_code(db, "ITM-99999") is None


async def test_dashboard_stats(db):
    low = await upsert_entity(db, "item", {"name": "Fuse", "current_stock": 1, "minimum_stock": 5})
    await upsert_entity(db, "item", {"name": "Relay", "current_stock": 9, "minimum_stock": 2})
    await upsert_entity(db, "location", {"name": "Main", "location_type": "building"})
    await record_stock_mutation(db, StockTarget(item_id=low.id), "stock_in", 1, "alice")

    stats = await dashboard_stats(db)
    assert stats.total_items == 2
    assert stats.low_stock_count == 1
    assert stats.total_locations == 1
    assert stats.recent_transactions == 1

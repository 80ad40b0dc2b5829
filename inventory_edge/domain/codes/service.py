# inventory_edge/domain/codes/service.py
"""Human-readable entity codes derived from local row counts.

The sequence is ``1 + count`` of existing rows of the same kind/subtype.
It is not gap-free and two concurrent callers can propose the same code;
the unique constraint on the local table and the remote store are the
actual arbiters of uniqueness.
"""
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from inventory_edge.db.models import LocationType
from inventory_edge.db.repositories.ledger import count_items, count_locations_of_type

ITEM_PREFIX = "ITM"
ITEM_DIGITS = 5

LOCATION_PREFIXES = {
    LocationType.BUILDING: "BLD",
    LocationType.ROOM: "ROM",
    LocationType.SHELF: "SHF",
    LocationType.BOX: "BOX",
    LocationType.DRAWER: "DRW",
}
LOCATION_DIGITS = 4


def format_code(prefix: str, sequence: int, digits: int) -> str:
    return f"{prefix}-{str(sequence).zfill(digits)}"


async def next_code(
    db: AsyncSession,
    kind: str,
    subtype: Optional[Union[LocationType, str]] = None,
) -> str:
    if kind == "item":
        count = await count_items(db)
        return format_code(ITEM_PREFIX, count + 1, ITEM_DIGITS)

    if kind == "location":
        if subtype is None:
            raise ValueError("Location codes need a location type")
        location_type = LocationType(subtype)
        count = await count_locations_of_type(db, location_type)
        return format_code(LOCATION_PREFIXES[location_type], count + 1, LOCATION_DIGITS)

    raise ValueError(f"No code sequence for entity kind {kind!r}")

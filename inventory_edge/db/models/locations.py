# inventory_edge/db/models/locations.py
import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text

from inventory_edge.core.timeutils import utcnow
from inventory_edge.db.base import Base


class LocationType(str, enum.Enum):
    BUILDING = "building"
    ROOM = "room"
    SHELF = "shelf"
    BOX = "box"
    DRAWER = "drawer"


class Location(Base):
    __tablename__ = "locations"

    """A place where items are kept.

    Locations form a tree through parent_id (building > room > shelf ...).
    The tree is kept acyclic by the ledger service on every write; the code
    is generated per location type and is the natural key used when syncing.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location_type = Column(
        Enum(LocationType, name="location_type_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    parent_id = Column(Integer, ForeignKey("locations.id"), nullable=True, index=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

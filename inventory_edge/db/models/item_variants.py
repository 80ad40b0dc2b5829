# inventory_edge/db/models/item_variants.py
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String

from inventory_edge.core.timeutils import utcnow
from inventory_edge.db.base import Base


class ItemVariant(Base):
    __tablename__ = "item_variants"

    """A variant of an item (size, colour, ...) with its own stock counter.

    Variant stock is tracked independently of the parent item's
    current_stock.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)

    variant_name = Column(String, nullable=False)
    sku_suffix = Column(String, nullable=True)
    variant_attributes = Column(JSON, nullable=False, default=dict)

    current_stock = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

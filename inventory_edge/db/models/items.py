# inventory_edge/db/models/items.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from inventory_edge.core.timeutils import utcnow
from inventory_edge.db.base import Base


class Item(Base):
    __tablename__ = "items"

    """A stocked article.

    current_stock is only ever written by the ledger mutation, in the same
    local transaction that appends the matching StockTransaction.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True, index=True)

    current_stock = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, nullable=False, default=0)
    unit = Column(String, nullable=False, default="pcs")
    image_url = Column(String, nullable=True)

    has_variants = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

# inventory_edge/db/models/categories.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from inventory_edge.core.timeutils import utcnow
from inventory_edge.db.base import Base


class Category(Base):
    __tablename__ = "categories"

    """Grouping for items. Its name is the natural key used when syncing."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    color = Column(String, nullable=False, default="#6366f1")
    icon = Column(String, nullable=False, default="package")

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

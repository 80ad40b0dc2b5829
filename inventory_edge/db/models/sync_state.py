# inventory_edge/db/models/sync_state.py
from sqlalchemy import JSON, Column, DateTime, Integer, String

from inventory_edge.core.timeutils import utcnow
from inventory_edge.db.base import Base


class SyncState(Base):
    __tablename__ = "sync_state"

    """Progress of a named local->remote sync stream.

    Holds the time of the last completed reconciliation pass and a small
    summary of its outcome, so restarts can report when data last left the
    device.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    stream_name = Column(String, nullable=False, unique=True)

    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    summary = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

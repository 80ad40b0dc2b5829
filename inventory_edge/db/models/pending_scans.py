# inventory_edge/db/models/pending_scans.py
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, String

from inventory_edge.core.timeutils import utcnow
from inventory_edge.db.base import Base


class PendingScan(Base):
    __tablename__ = "pending_scans"

    """A scan served locally that still has to reach the remote audit trail.

    Rows are created only by the scan queue and deleted only once their own
    remote write has been acknowledged.
    """

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    code = Column(String, nullable=False)
    code_type = Column(String, nullable=False)
    device_id = Column(String, nullable=False)

    scanned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    synced = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_pending_scans_synced_scanned", "synced", "scanned_at"),
    )

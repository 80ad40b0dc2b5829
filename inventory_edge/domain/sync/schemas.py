# inventory_edge/domain/sync/schemas.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


@dataclass
class TableResult:
    table: str
    synced: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class RemoteIds:
    """Local id -> remote id, filled as each table is pushed."""

    categories: Dict[int, Any] = field(default_factory=dict)
    locations: Dict[int, Any] = field(default_factory=dict)


class SyncReport(BaseModel):
    success: bool
    skipped: bool = False
    reason: Optional[str] = None
    synced: int = 0
    errors: List[str] = Field(default_factory=list)
    tables: Dict[str, int] = Field(default_factory=dict)
    scans_synced: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class SyncStatus(BaseModel):
    in_progress: bool
    online: bool
    last_synced_at: Optional[datetime] = None
    last_summary: Optional[Dict[str, Any]] = None
    pending_scans: int = 0


class ConnectivityIn(BaseModel):
    online: bool


class ConnectivityOut(BaseModel):
    online: bool
    offline_mode: bool
    serving_offline: bool
    sync: Optional[SyncReport] = None

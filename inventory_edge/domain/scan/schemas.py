# inventory_edge/domain/scan/schemas.py
import enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ScanState(str, enum.Enum):
    RECEIVED = "received"
    LOOKED_UP = "looked-up"
    FOUND = "found"
    NOT_FOUND = "not-found"
    QUEUED = "queued-for-sync"
    SYNCED = "synced"


class ScanRequest(BaseModel):
    code: str = Field(min_length=1, max_length=100)
    device_id: str = Field(min_length=1, max_length=100)


class ScanData(BaseModel):
    name: str
    code: str
    current_stock: Optional[int] = None
    minimum_stock: Optional[int] = None
    unit: Optional[str] = None
    location_type: Optional[str] = None


class ScanResponse(BaseModel):
    success: bool
    type: Optional[Literal["item", "location"]] = None
    data: Optional[ScanData] = None
    error: Optional[str] = None
    timestamp: str
    offline: bool


class DrainResult(BaseModel):
    synced: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)

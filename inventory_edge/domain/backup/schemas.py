# inventory_edge/domain/backup/schemas.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from inventory_edge.db.models import LocationType, TransactionType

EXPORT_VERSION = "1.0.0"

ImportMode = Literal["replace", "merge"]


class SnapshotRow(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class CategoryRow(SnapshotRow):
    id: Optional[int] = None
    name: str
    description: Optional[str] = None
    color: str = "#6366f1"
    icon: str = "package"
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class LocationRow(SnapshotRow):
    id: Optional[int] = None
    code: str
    name: str
    description: Optional[str] = None
    location_type: LocationType
    parent_id: Optional[int] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class ItemRow(SnapshotRow):
    id: Optional[int] = None
    code: str
    name: str
    description: Optional[str] = None
    category_id: Optional[int] = None
    location_id: Optional[int] = None
    current_stock: int = 0
    minimum_stock: int = 0
    unit: str = "pcs"
    image_url: Optional[str] = None
    has_variants: bool = False
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class ItemVariantRow(SnapshotRow):
    id: Optional[int] = None
    parent_item_id: int
    variant_name: str
    sku_suffix: Optional[str] = None
    variant_attributes: Dict[str, Any] = Field(default_factory=dict)
    current_stock: int = 0
    minimum_stock: int = 0
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class StockTransactionRow(SnapshotRow):
    id: Optional[int] = None
    item_id: Optional[int] = None
    variant_id: Optional[int] = None
    transaction_type: TransactionType
    quantity: int
    balance_before: int
    balance_after: int
    notes: Optional[str] = None
    recipient: Optional[str] = None
    location_id: Optional[int] = None
    performed_by: str
    created_at: datetime


class SnapshotData(BaseModel):
    # rows stay raw here; each one is parsed on its own during import
    categories: List[Dict[str, Any]]
    locations: List[Dict[str, Any]]
    items: List[Dict[str, Any]]
    item_variants: List[Dict[str, Any]] = Field(default_factory=list, alias="itemVariants")
    stock_transactions: List[Dict[str, Any]] = Field(default_factory=list, alias="stockTransactions")

    class Config:
        populate_by_name = True


class Snapshot(BaseModel):
    version: str
    exported_at: str = Field(alias="exportedAt")
    data: SnapshotData

    class Config:
        populate_by_name = True

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ValidationFailure(BaseModel):
    error: str


ValidationResult = Union[Snapshot, ValidationFailure]


class ImportCounts(BaseModel):
    categories: int = 0
    locations: int = 0
    items: int = 0
    item_variants: int = Field(default=0, alias="itemVariants")
    stock_transactions: int = Field(default=0, alias="stockTransactions")

    class Config:
        populate_by_name = True


class ImportResult(BaseModel):
    success: bool
    counts: ImportCounts = Field(default_factory=ImportCounts)
    error: Optional[str] = None

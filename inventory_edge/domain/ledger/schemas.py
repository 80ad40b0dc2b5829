# inventory_edge/domain/ledger/schemas.py
from datetime import datetime
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from inventory_edge.db.models import LocationType, TransactionType

EntityKind = Literal["category", "location", "item", "variant"]


class StockTarget(BaseModel):
    item_id: Optional[int] = None
    variant_id: Optional[int] = None

    @model_validator(mode="after")
    def _exactly_one_target(self):
        if (self.item_id is None) == (self.variant_id is None):
            raise ValueError("Exactly one of item_id or variant_id must be given")
        return self

    @property
    def kind(self) -> str:
        return "variant" if self.variant_id is not None else "item"

    @property
    def target_id(self) -> int:
        return self.variant_id if self.variant_id is not None else self.item_id


class CategoryIn(BaseModel):
    id: Optional[int] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    color: str = "#6366f1"
    icon: str = "package"
    is_active: bool = True


class LocationIn(BaseModel):
    id: Optional[int] = None
    code: Optional[str] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    location_type: LocationType
    parent_id: Optional[int] = None
    is_active: bool = True


class ItemIn(BaseModel):
    id: Optional[int] = None
    code: Optional[str] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category_id: Optional[int] = None
    location_id: Optional[int] = None
    # only honoured when the item is created; afterwards stock moves through the ledger
    current_stock: int = 0
    minimum_stock: int = 0
    unit: str = "pcs"
    image_url: Optional[str] = None
    is_active: bool = True


class VariantIn(BaseModel):
    id: Optional[int] = None
    parent_item_id: int
    variant_name: str = Field(min_length=1)
    sku_suffix: Optional[str] = None
    variant_attributes: Dict[str, str] = Field(default_factory=dict)
    current_stock: int = 0
    minimum_stock: int = 0
    is_active: bool = True


class StockMutationIn(BaseModel):
    item_id: Optional[int] = None
    variant_id: Optional[int] = None
    quantity: int
    performed_by: str = Field(min_length=1)
    notes: Optional[str] = None
    recipient: Optional[str] = None
    location_id: Optional[int] = None

    def target(self) -> StockTarget:
        return StockTarget(item_id=self.item_id, variant_id=self.variant_id)


class TransactionOut(BaseModel):
    id: int
    item_id: Optional[int]
    variant_id: Optional[int]
    transaction_type: TransactionType
    quantity: int
    balance_before: int
    balance_after: int
    location_id: Optional[int]
    notes: Optional[str]
    recipient: Optional[str]
    performed_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class EntityOut(BaseModel):
    id: int
    kind: EntityKind
    code: Optional[str] = None
    name: str
    is_active: bool
    current_stock: Optional[int] = None


class DashboardStats(BaseModel):
    total_items: int
    low_stock_count: int
    total_locations: int
    recent_transactions: int

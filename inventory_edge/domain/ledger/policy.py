# inventory_edge/domain/ledger/policy.py
"""Stock rules enforced on top of the ledger.

The ledger itself accepts any signed movement; these helpers are what the
API layer calls, and they refuse movements the configured policy forbids.
The no-negative rule is checked inside the stock UPDATE, so concurrent
stock-outs cannot both pass it.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from inventory_edge.core.config import Settings, settings
from inventory_edge.core.errors import MissingReason
from inventory_edge.db.models import StockTransaction, TransactionType
from .schemas import StockTarget
from .service import record_stock_mutation


@dataclass
class StockPolicy:
    allow_negative: bool = False
    require_reason_stock_out: bool = False
    require_reason_adjustment: bool = False

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "StockPolicy":
        return cls(
            allow_negative=cfg.ALLOW_NEGATIVE_STOCK,
            require_reason_stock_out=cfg.REQUIRE_REASON_STOCK_OUT,
            require_reason_adjustment=cfg.REQUIRE_REASON_ADJUSTMENT,
        )


def _require_positive(quantity: int):
    if quantity <= 0:
        raise ValueError("Quantity must be greater than zero")


async def stock_in(
    db: AsyncSession,
    target: StockTarget,
    quantity: int,
    performed_by: str,
    notes: Optional[str] = None,
    location_id: Optional[int] = None,
) -> StockTransaction:
    _require_positive(quantity)
    return await record_stock_mutation(
        db, target, TransactionType.STOCK_IN, quantity, performed_by,
        notes=notes, location_id=location_id,
    )


async def stock_out(
    db: AsyncSession,
    target: StockTarget,
    quantity: int,
    performed_by: str,
    notes: Optional[str] = None,
    recipient: Optional[str] = None,
    location_id: Optional[int] = None,
    policy: Optional[StockPolicy] = None,
) -> StockTransaction:
    policy = policy or StockPolicy.from_settings()
    _require_positive(quantity)
    if policy.require_reason_stock_out and not (notes or "").strip():
        raise MissingReason("A reason is required for stock out")

    return await record_stock_mutation(
        db, target, TransactionType.STOCK_OUT, quantity, performed_by,
        notes=notes, recipient=recipient, location_id=location_id,
        allow_negative=policy.allow_negative,
    )


async def adjust(
    db: AsyncSession,
    target: StockTarget,
    delta: int,
    performed_by: str,
    notes: Optional[str] = None,
    policy: Optional[StockPolicy] = None,
) -> StockTransaction:
    policy = policy or StockPolicy.from_settings()
    if delta == 0:
        raise ValueError("Adjustment must change the stock")
    if policy.require_reason_adjustment and not (notes or "").strip():
        raise MissingReason("A reason is required for adjustments")

    return await record_stock_mutation(
        db, target, TransactionType.ADJUSTMENT, delta, performed_by, notes=notes,
        allow_negative=policy.allow_negative,
    )

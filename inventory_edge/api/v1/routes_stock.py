# inventory_edge/api/v1/routes_stock.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_edge.core.timeutils import as_utc
from inventory_edge.db.base import get_db
from inventory_edge.domain.ledger import policy
from inventory_edge.domain.ledger.schemas import StockMutationIn, StockTarget, TransactionOut
from inventory_edge.domain.ledger.service import list_transactions, transactions_between

router = APIRouter(prefix="/api/v1/stock", tags=["stock"])


@router.post("/in", response_model=TransactionOut)
async def stock_in_endpoint(payload: StockMutationIn, db: AsyncSession = Depends(get_db)):
    return await policy.stock_in(
        db, payload.target(), payload.quantity, payload.performed_by,
        notes=payload.notes, location_id=payload.location_id,
    )


@router.post("/out", response_model=TransactionOut)
async def stock_out_endpoint(payload: StockMutationIn, db: AsyncSession = Depends(get_db)):
    return await policy.stock_out(
        db, payload.target(), payload.quantity, payload.performed_by,
        notes=payload.notes, recipient=payload.recipient, location_id=payload.location_id,
    )


@router.post("/adjust", response_model=TransactionOut)
async def adjust_endpoint(payload: StockMutationIn, db: AsyncSession = Depends(get_db)):
    return await policy.adjust(
        db, payload.target(), payload.quantity, payload.performed_by, notes=payload.notes,
    )


@router.get("/transactions", response_model=List[TransactionOut])
async def transactions_endpoint(
    item_id: Optional[int] = None,
    variant_id: Optional[int] = None,
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    try:
        target = StockTarget(item_id=item_id, variant_id=variant_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return await list_transactions(db, target, limit=limit)


@router.get("/transactions/between", response_model=List[TransactionOut])
async def transactions_between_endpoint(
    start: datetime,
    end: datetime,
    db: AsyncSession = Depends(get_db),
):
    start, end = as_utc(start), as_utc(end)
    if start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start must not be after end")
    return await transactions_between(db, start, end)

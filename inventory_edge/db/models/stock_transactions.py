# inventory_edge/db/models/stock_transactions.py
import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text

from inventory_edge.core.timeutils import utcnow
from inventory_edge.db.base import Base


class TransactionType(str, enum.Enum):
    STOCK_IN = "stock_in"
    STOCK_OUT = "stock_out"
    ADJUSTMENT = "adjustment"


class StockTransaction(Base):
    __tablename__ = "stock_transactions"

    """Append-only ledger entry for a single stock movement.

    Targets exactly one of an item or a variant. quantity is signed
    (negative for stock_out) and balance_after == balance_before + quantity.
    Rows are never updated; corrections are new compensating entries.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=True)
    variant_id = Column(Integer, ForeignKey("item_variants.id"), nullable=True)

    transaction_type = Column(
        Enum(TransactionType, name="transaction_type_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    quantity = Column(Integer, nullable=False)
    balance_before = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)

    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    notes = Column(Text, nullable=True)
    recipient = Column(String, nullable=True)
    performed_by = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    __table_args__ = (
        CheckConstraint(
            "(item_id IS NULL) <> (variant_id IS NULL)",
            name="ck_stock_transactions_single_target",
        ),
        CheckConstraint(
            "balance_after = balance_before + quantity",
            name="ck_stock_transactions_balance",
        ),
        Index("ix_stock_transactions_item_created", "item_id", "created_at"),
        Index("ix_stock_transactions_variant_created", "variant_id", "created_at"),
    )

from inventory_edge.db.models.categories import Category
from inventory_edge.db.models.item_variants import ItemVariant
from inventory_edge.db.models.items import Item
from inventory_edge.db.models.locations import Location, LocationType
from inventory_edge.db.models.pending_scans import PendingScan
from inventory_edge.db.models.stock_transactions import StockTransaction, TransactionType
from inventory_edge.db.models.sync_state import SyncState

__all__ = [
    "Category",
    "Item",
    "ItemVariant",
    "Location",
    "LocationType",
    "PendingScan",
    "StockTransaction",
    "SyncState",
    "TransactionType",
]

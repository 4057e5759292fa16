"""
Medical stock ledger.

Models:
- InventoryItem (one row per SKU)
- InventoryLot (dated batch of an item; quantity never negative)
- InventoryTransaction (append-only signed deltas written alongside lot changes)
"""

from .item import InventoryItem
from .lot import InventoryLot
from .transaction import InventoryTransaction, TRANSACTION_TYPES

__all__ = ["InventoryItem", "InventoryLot", "InventoryTransaction", "TRANSACTION_TYPES"]

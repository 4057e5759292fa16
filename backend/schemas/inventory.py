from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, field_validator


TransactionType = Literal["RECEIVE", "DISPATCH", "ADJUST"]
StockStatus = Literal["OUT", "LOW", "OK"]


def _strip(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


def _integral(v: Any) -> Any:
    """JSON `3.0` is the integer 3; anything else non-int is left for the ledger to reject."""
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return v


# Required fields stay Optional: missing and empty values both surface as the
# ledger's ValidationError (400) rather than a 422. Counts are typed Any so
# pydantic does not coerce `true` or `"4"` into an int first.
class ItemCreate(BaseModel):
    name: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    min_level: Any = 0

    @field_validator("name", "sku", "category", "unit")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)

    @field_validator("min_level")
    @classmethod
    def _integral_count(cls, v: Any) -> Any:
        return _integral(v)


class ReceiveRequest(BaseModel):
    sku: Optional[str] = None
    lot_no: Optional[str] = None
    expiry_date: Optional[str] = None
    quantity: Any = None
    location: Optional[str] = None

    @field_validator("sku", "lot_no", "expiry_date", "location")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)

    @field_validator("quantity")
    @classmethod
    def _integral_count(cls, v: Any) -> Any:
        return _integral(v)


class DispatchRequest(BaseModel):
    sku: Optional[str] = None
    quantity: Any = None
    reason: Optional[str] = None

    @field_validator("sku", "reason")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        return _strip(v)

    @field_validator("quantity")
    @classmethod
    def _integral_count(cls, v: Any) -> Any:
        return _integral(v)


class OkResponse(BaseModel):
    ok: bool = True


class ItemRead(BaseModel):
    item_id: int
    name: str
    sku: str
    category: Optional[str] = None
    unit: Optional[str] = None
    min_level: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ItemStockRead(ItemRead):
    current_stock: int


class TransactionRead(BaseModel):
    txn_id: int
    ts: datetime
    type: TransactionType
    qty_change: int
    note: Optional[str] = None
    sku: Optional[str] = None
    lot_no: Optional[str] = None
    expiry: Optional[str] = None
    location: Optional[str] = None


class AlertRead(BaseModel):
    sku: str
    name: str
    min_level: int
    stock: int
    earliest_expiry: Optional[str] = None
    status: StockStatus


class StatsRead(BaseModel):
    total_items: int
    units_in_stock: int
    low_stock: int
    expiring_soon: int

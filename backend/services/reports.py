"""
Read-only alerting and reporting over committed ledger state.

- alerts: items that are under their minimum level, have no lots, or have a
  lot expiring within the horizon
- stats: dashboard counters
- recent_transactions: newest movements, joined to whatever item/lot still exists
"""

from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from db.inventory.item import InventoryItem as InventoryItemModel
from db.inventory.lot import InventoryLot as InventoryLotModel
from db.inventory.transaction import InventoryTransaction as InventoryTransactionModel
from services.stock import stock_expr

STATUS_OUT = "OUT"
STATUS_LOW = "LOW"
STATUS_OK = "OK"


def _horizon(days: int, today: Optional[date]) -> date:
    return (today or date.today()) + timedelta(days=int(days))


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


def stock_status(stock: int, min_level: int) -> str:
    if stock <= 0:
        return STATUS_OUT
    if stock < min_level:
        return STATUS_LOW
    return STATUS_OK


async def alerts(db: AsyncSession, days: Optional[int] = None, today: Optional[date] = None) -> List[dict]:
    if days is None:
        days = settings.expiry_horizon_days
    horizon = _horizon(days, today)

    stock = stock_expr()
    earliest = func.min(InventoryLotModel.expiry_date)
    stmt = (
        select(
            InventoryItemModel.sku,
            InventoryItemModel.name,
            InventoryItemModel.min_level,
            stock.label("stock"),
            earliest.label("earliest_expiry"),
        )
        .outerjoin(InventoryLotModel, InventoryLotModel.item_id == InventoryItemModel.item_id)
        .group_by(
            InventoryItemModel.item_id,
            InventoryItemModel.sku,
            InventoryItemModel.name,
            InventoryItemModel.min_level,
        )
        .having(
            or_(
                stock < InventoryItemModel.min_level,
                earliest.is_(None),
                earliest <= horizon,
            )
        )
        .order_by(InventoryItemModel.name.asc(), InventoryItemModel.item_id.asc())
    )
    res = await db.execute(stmt)

    out = []
    for r in res.all():
        qty = int(r.stock or 0)
        min_level = int(r.min_level or 0)
        out.append(
            {
                "sku": r.sku,
                "name": r.name,
                "min_level": min_level,
                "stock": qty,
                "earliest_expiry": _iso(r.earliest_expiry),
                "status": stock_status(qty, min_level),
            }
        )
    return out


async def stats(db: AsyncSession, days: Optional[int] = None, today: Optional[date] = None) -> dict:
    if days is None:
        days = settings.expiry_horizon_days
    horizon = _horizon(days, today)

    total_items = (await db.execute(select(func.count(InventoryItemModel.item_id)))).scalar_one()
    units = (
        await db.execute(select(func.coalesce(func.sum(InventoryLotModel.quantity), 0)))
    ).scalar_one()

    per_item = (
        select(InventoryItemModel.min_level, stock_expr().label("current_stock"))
        .outerjoin(InventoryLotModel, InventoryLotModel.item_id == InventoryItemModel.item_id)
        .group_by(InventoryItemModel.item_id, InventoryItemModel.min_level)
        .subquery()
    )
    low_stock = (
        await db.execute(
            select(func.count()).select_from(per_item).where(per_item.c.current_stock < per_item.c.min_level)
        )
    ).scalar_one()

    expiring_soon = (
        await db.execute(
            select(func.count(distinct(InventoryLotModel.item_id))).where(
                InventoryLotModel.expiry_date <= horizon
            )
        )
    ).scalar_one()

    return {
        "total_items": int(total_items or 0),
        "units_in_stock": int(units or 0),
        "low_stock": int(low_stock or 0),
        "expiring_soon": int(expiring_soon or 0),
    }


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.transactions_default_limit
    return max(0, min(int(limit), settings.transactions_max_limit))


async def recent_transactions(db: AsyncSession, limit: Optional[int] = None) -> List[dict]:
    stmt = (
        select(
            InventoryTransactionModel.txn_id,
            InventoryTransactionModel.ts,
            InventoryTransactionModel.type,
            InventoryTransactionModel.qty_change,
            InventoryTransactionModel.note,
            InventoryItemModel.sku,
            InventoryLotModel.lot_no,
            InventoryLotModel.expiry_date,
            InventoryLotModel.location,
        )
        .select_from(InventoryTransactionModel)
        .outerjoin(InventoryItemModel, InventoryItemModel.item_id == InventoryTransactionModel.item_id)
        .outerjoin(InventoryLotModel, InventoryLotModel.lot_id == InventoryTransactionModel.lot_id)
        .order_by(InventoryTransactionModel.ts.desc(), InventoryTransactionModel.txn_id.desc())
        .limit(clamp_limit(limit))
    )
    res = await db.execute(stmt)
    return [
        {
            "txn_id": r.txn_id,
            "ts": r.ts,
            "type": r.type,
            "qty_change": int(r.qty_change),
            "note": r.note,
            "sku": r.sku,
            "lot_no": r.lot_no,
            "expiry": _iso(r.expiry_date),
            "location": r.location,
        }
        for r in res.all()
    ]

"""Stock view: per-item stock derived from lot quantities on every read."""

from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.inventory.item import InventoryItem as InventoryItemModel
from db.inventory.lot import InventoryLot as InventoryLotModel


def stock_expr():
    return func.coalesce(func.sum(InventoryLotModel.quantity), 0)


def item_stock_select():
    """items LEFT JOIN lots grouped per item, with a `current_stock` column."""
    return (
        select(InventoryItemModel, stock_expr().label("current_stock"))
        .outerjoin(InventoryLotModel, InventoryLotModel.item_id == InventoryItemModel.item_id)
        .group_by(InventoryItemModel.item_id)
    )


async def current_stock(db: AsyncSession, item_id: int) -> int:
    res = await db.execute(
        select(stock_expr()).where(InventoryLotModel.item_id == item_id)
    )
    return int(res.scalar_one() or 0)


async def list_items(db: AsyncSession, search: Optional[str] = None) -> List[dict]:
    stmt = item_stock_select()
    q = (search or "").strip()
    if q:
        needle = q.lower()
        stmt = stmt.where(
            or_(
                func.lower(InventoryItemModel.name).contains(needle, autoescape=True),
                func.lower(InventoryItemModel.sku).contains(needle, autoescape=True),
            )
        )
    res = await db.execute(
        stmt.order_by(InventoryItemModel.name.asc(), InventoryItemModel.item_id.asc())
    )
    out = []
    for item, stock in res.all():
        row = item.to_schema
        row["current_stock"] = int(stock or 0)
        out.append(row)
    return out

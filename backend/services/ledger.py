"""
Ledger engine: the only writer of items, lots and transactions.

Each public coroutine is one atomic unit on the session it is given: it
either commits every row it touched or rolls back and raises a LedgerError.
Input is validated before the session is used.
"""

import logging
import re
from datetime import date
from typing import Any, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import (
    InsufficientStockError,
    LedgerError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from db.inventory.item import InventoryItem as InventoryItemModel
from db.inventory.lot import InventoryLot as InventoryLotModel
from db.inventory.transaction import DISPATCH, RECEIVE, InventoryTransaction as InventoryTransactionModel

logger = logging.getLogger(__name__)

RECEIVE_NOTE = "Stock received"
DISPATCH_NOTE = "Dispatched"

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def _require_text(value: Any, field: str) -> str:
    if value is None or not isinstance(value, str):
        raise ValidationError(f"{field} is required", field=field)
    v = value.strip()
    if not v:
        raise ValidationError(f"{field} is required", field=field)
    return v


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def _require_positive_int(value: Any, field: str) -> int:
    # bool is an int subclass; True must not mean "1 unit"
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", field=field)
    return value


def _non_negative_int(value: Any, field: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be a non-negative integer", field=field)
    return value


def _parse_date(value: Any, field: str) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    v = value.strip()
    if not _ISO_DATE.fullmatch(v):
        raise ValidationError(f"{field} must be a valid YYYY-MM-DD date", field=field)
    try:
        return date.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"{field} must be a valid YYYY-MM-DD date", field=field)


def _insert_for(db: AsyncSession):
    """Dialect-specific INSERT supporting ON CONFLICT (Postgres in prod, SQLite in tests)."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert
    return postgresql.insert


async def _rollback_and_wrap(db: AsyncSession, exc: SQLAlchemyError, operation: str) -> StorageError:
    await db.rollback()
    logger.error("%s failed, rolled back", operation, exc_info=exc, extra={"operation": operation})
    return StorageError(f"{operation} failed: {exc.__class__.__name__}", operation=operation)


async def register_item(
    db: AsyncSession,
    *,
    name: Any,
    sku: Any,
    category: Any = None,
    unit: Any = None,
    min_level: Any = 0,
) -> dict:
    """
    Insert an item, or overwrite name/category/unit/min_level of the existing
    item with the same SKU. Lots and stock are never touched.
    """
    name = _require_text(name, "name")
    sku = _require_text(sku, "sku")
    category = _optional_text(category)
    unit = _optional_text(unit) or "unit"
    min_level = _non_negative_int(min_level, "min_level")

    try:
        insert = _insert_for(db)
        stmt = insert(InventoryItemModel).values(
            name=name, sku=sku, category=category, unit=unit, min_level=min_level
        )
        stmt = (
            stmt.on_conflict_do_update(
                index_elements=["sku"],
                set_={
                    "name": stmt.excluded.name,
                    "category": stmt.excluded.category,
                    "unit": stmt.excluded.unit,
                    "min_level": stmt.excluded.min_level,
                    "updated_at": func.now(),
                },
            )
            .returning(InventoryItemModel)
            .execution_options(populate_existing=True)
        )
        item = (await db.execute(stmt)).scalar_one()
        out = item.to_schema
        await db.commit()
    except SQLAlchemyError as e:
        raise await _rollback_and_wrap(db, e, "register_item") from e

    logger.info("item registered", extra={"sku": sku, "item_id": out["item_id"]})
    return out


async def _find_or_create_item_id(db: AsyncSession, sku: str) -> int:
    insert = _insert_for(db)
    # name = SKU, no category/unit; a concurrent receive may create it first
    await db.execute(
        insert(InventoryItemModel)
        .values(name=sku, sku=sku, category=None, unit=None, min_level=0)
        .on_conflict_do_nothing(index_elements=["sku"])
    )
    res = await db.execute(select(InventoryItemModel.item_id).where(InventoryItemModel.sku == sku))
    return res.scalar_one()


async def _upsert_lot(
    db: AsyncSession,
    *,
    item_id: int,
    lot_no: str,
    expiry_date: date,
    quantity: int,
    location: Optional[str],
) -> int:
    insert = _insert_for(db)
    lots = InventoryLotModel.__table__
    stmt = insert(lots).values(
        item_id=item_id,
        lot_no=lot_no,
        expiry_date=expiry_date,
        quantity=quantity,
        location=location,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["item_id", "lot_no"],
        set_={
            # latest receipt wins for expiry; location only fills a gap
            "expiry_date": stmt.excluded.expiry_date,
            "quantity": lots.c.quantity + stmt.excluded.quantity,
            "location": func.coalesce(lots.c.location, stmt.excluded.location),
            "updated_at": func.now(),
        },
    ).returning(lots.c.lot_id)
    return (await db.execute(stmt)).scalar_one()


async def _touch_item(db: AsyncSession, item_id: int) -> None:
    await db.execute(
        update(InventoryItemModel.__table__)
        .where(InventoryItemModel.__table__.c.item_id == item_id)
        .values(updated_at=func.now())
    )


async def receive(
    db: AsyncSession,
    *,
    sku: Any,
    lot_no: Any,
    expiry_date: Any,
    quantity: Any,
    location: Any = None,
) -> dict:
    """Add stock to a lot, creating the item and/or lot when unknown."""
    sku = _require_text(sku, "sku")
    lot_no = _require_text(lot_no, "lot_no")
    expiry = _parse_date(expiry_date, "expiry_date")
    quantity = _require_positive_int(quantity, "quantity")
    location = _optional_text(location)

    try:
        item_id = await _find_or_create_item_id(db, sku)
        lot_id = await _upsert_lot(
            db,
            item_id=item_id,
            lot_no=lot_no,
            expiry_date=expiry,
            quantity=quantity,
            location=location,
        )
        db.add(
            InventoryTransactionModel(
                item_id=item_id,
                lot_id=lot_id,
                qty_change=quantity,
                type=RECEIVE,
                note=RECEIVE_NOTE,
            )
        )
        await _touch_item(db, item_id)
        await db.commit()
    except SQLAlchemyError as e:
        raise await _rollback_and_wrap(db, e, "receive") from e

    logger.info(
        "stock received",
        extra={"sku": sku, "lot_no": lot_no, "quantity": quantity, "lot_id": lot_id},
    )
    return {"ok": True}


async def _lock_lots_fefo(db: AsyncSession, item_id: int) -> List[Tuple[int, int]]:
    """
    Lock the item's non-empty lots, earliest expiry first.

    SKIP LOCKED: lots held by another in-flight dispatch are left out of this
    attempt instead of being waited on.
    """
    res = await db.execute(
        select(InventoryLotModel.lot_id, InventoryLotModel.quantity)
        .where(InventoryLotModel.item_id == item_id, InventoryLotModel.quantity > 0)
        .order_by(InventoryLotModel.expiry_date.asc(), InventoryLotModel.lot_id.asc())
        .with_for_update(skip_locked=True)
    )
    return [(int(r.lot_id), int(r.quantity)) for r in res.all()]


async def _decrement_lot(db: AsyncSession, lot_id: int, take: int) -> bool:
    """Conditional decrement; False when the balance no longer covers `take`."""
    lots = InventoryLotModel.__table__
    res = await db.execute(
        update(lots)
        .where(lots.c.lot_id == lot_id, lots.c.quantity >= take)
        .values(quantity=lots.c.quantity - take, updated_at=func.now())
    )
    return bool(res.rowcount)


async def dispatch(
    db: AsyncSession,
    *,
    sku: Any,
    quantity: Any,
    reason: Any = None,
) -> dict:
    """
    Remove `quantity` units of an item, consuming lots earliest-expiry-first.

    Either the full quantity is allocated and committed, or nothing is.
    """
    sku = _require_text(sku, "sku")
    quantity = _require_positive_int(quantity, "quantity")
    note = _optional_text(reason) or DISPATCH_NOTE

    try:
        res = await db.execute(select(InventoryItemModel.item_id).where(InventoryItemModel.sku == sku))
        item_id = res.scalar_one_or_none()
        if item_id is None:
            raise NotFoundError("Item not found", sku=sku)

        remaining = quantity
        touched: List[int] = []
        for lot_id, available in await _lock_lots_fefo(db, item_id):
            if remaining <= 0:
                break
            take = min(remaining, available)
            if not await _decrement_lot(db, lot_id, take):
                # balance moved under us; this lot gives nothing to this attempt
                logger.debug("lot %s changed concurrently, skipped", lot_id)
                continue
            db.add(
                InventoryTransactionModel(
                    item_id=item_id,
                    lot_id=lot_id,
                    qty_change=-take,
                    type=DISPATCH,
                    note=note,
                )
            )
            remaining -= take
            touched.append(lot_id)

        if remaining > 0:
            raise InsufficientStockError(sku, requested=quantity, allocated=quantity - remaining)

        await db.flush()
        # only the lots this dispatch emptied; other zero lots belong to other units
        await db.execute(
            delete(InventoryLotModel.__table__).where(
                InventoryLotModel.__table__.c.lot_id.in_(touched),
                InventoryLotModel.__table__.c.quantity <= 0,
            )
        )
        await _touch_item(db, item_id)
        await db.commit()
    except LedgerError as e:
        await db.rollback()
        logger.warning("dispatch rejected: %s", e.message, extra={"sku": sku, "code": e.code})
        raise
    except SQLAlchemyError as e:
        raise await _rollback_and_wrap(db, e, "dispatch") from e

    logger.info(
        "stock dispatched",
        extra={"sku": sku, "quantity": quantity, "lots": touched},
    )
    return {"ok": True}

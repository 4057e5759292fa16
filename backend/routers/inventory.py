from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_async_session
from schemas.inventory import (
    DispatchRequest,
    ItemCreate,
    ItemRead,
    ItemStockRead,
    OkResponse,
    ReceiveRequest,
)
from services import ledger
from services.stock import list_items

router = APIRouter()


@router.get("/items", response_model=List[ItemStockRead])
async def get_items(
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session),
):
    """Items with their current stock, optionally filtered by name/SKU substring."""
    return await list_items(db, search=search)


@router.post("/items", response_model=ItemRead)
async def register_item(
    payload: ItemCreate,
    db: AsyncSession = Depends(get_async_session),
):
    return await ledger.register_item(
        db,
        name=payload.name,
        sku=payload.sku,
        category=payload.category,
        unit=payload.unit,
        min_level=payload.min_level,
    )


@router.post("/receive", response_model=OkResponse)
async def receive_stock(
    payload: ReceiveRequest,
    db: AsyncSession = Depends(get_async_session),
):
    return await ledger.receive(
        db,
        sku=payload.sku,
        lot_no=payload.lot_no,
        expiry_date=payload.expiry_date,
        quantity=payload.quantity,
        location=payload.location,
    )


@router.post("/dispatch", response_model=OkResponse)
async def dispatch_stock(
    payload: DispatchRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Dispatch stock earliest-expiry-first.

    - 404 when the SKU is unknown.
    - 400 when the visible lots cannot cover the quantity; nothing is dispatched.
    """
    return await ledger.dispatch(
        db,
        sku=payload.sku,
        quantity=payload.quantity,
        reason=payload.reason,
    )

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from db.database import get_async_session
from schemas.inventory import AlertRead, StatsRead, TransactionRead
from services import reports

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health(db: AsyncSession = Depends(get_async_session)):
    try:
        now = (await db.execute(select(func.now()))).scalar_one()
    except SQLAlchemyError as e:
        logger.error("health check failed", exc_info=e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": str(e)},
        )
    return {"ok": True, "now": now}


@router.get("/stats", response_model=StatsRead)
async def get_stats(
    days: Optional[int] = None,
    db: AsyncSession = Depends(get_async_session),
):
    return await reports.stats(db, days=days if days is not None else settings.expiry_horizon_days)


@router.get("/alerts", response_model=List[AlertRead])
async def get_alerts(
    days: Optional[int] = None,
    db: AsyncSession = Depends(get_async_session),
):
    return await reports.alerts(db, days=days if days is not None else settings.expiry_horizon_days)


@router.get("/transactions", response_model=List[TransactionRead])
async def get_transactions(
    limit: Optional[int] = None,
    db: AsyncSession = Depends(get_async_session),
):
    """Most recent movements first; `limit` is capped at 100."""
    return await reports.recent_transactions(db, limit=limit)

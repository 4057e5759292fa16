from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Only satisfies module import of db.database; tests build their own engine.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from db.database import Base, enable_sqlite_foreign_keys  # noqa: E402
from db import inventory  # noqa: E402,F401


@pytest.fixture()
async def engine(tmp_path):
    # file-backed so that several sessions (concurrency tests) see one database
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture()
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def db(session_maker):
    async with session_maker() as session:
        yield session

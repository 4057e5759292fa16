from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import delete

from db.inventory.item import InventoryItem
from services import ledger, reports
from services.stock import list_items

TODAY = date(2026, 1, 10)


async def _seed(db):
    # OK: plenty of stock, expiry far away
    await ledger.register_item(db, name="Alcohol swabs", sku="SWB", min_level=10)
    await ledger.receive(db, sku="SWB", lot_no="S1", expiry_date="2027-01-01", quantity=100)
    # LOW: under min level
    await ledger.register_item(db, name="Bandage", sku="BND", min_level=20)
    await ledger.receive(db, sku="BND", lot_no="B1", expiry_date="2027-01-01", quantity=5)
    # OUT: no lots at all
    await ledger.register_item(db, name="Catheter", sku="CTH", min_level=3)
    # OK stock but one lot expires within 30 days
    await ledger.register_item(db, name="Dextrose", sku="DXT", min_level=1)
    await ledger.receive(db, sku="DXT", lot_no="D1", expiry_date="2026-02-01", quantity=4)
    await ledger.receive(db, sku="DXT", lot_no="D2", expiry_date="2026-12-01", quantity=4)


async def test_alerts_inclusion_and_status(db):
    await _seed(db)

    rows = await reports.alerts(db, days=30, today=TODAY)

    by_sku = {r["sku"]: r for r in rows}
    assert list(by_sku) == ["BND", "CTH", "DXT"]  # ordered by name
    assert by_sku["BND"]["status"] == "LOW"
    assert by_sku["BND"]["stock"] == 5
    assert by_sku["CTH"]["status"] == "OUT"
    assert by_sku["CTH"]["stock"] == 0
    assert by_sku["CTH"]["earliest_expiry"] is None
    assert by_sku["DXT"]["status"] == "OK"
    assert by_sku["DXT"]["earliest_expiry"] == "2026-02-01"
    assert by_sku["DXT"]["stock"] == 8


async def test_alerts_horizon_boundary_is_inclusive(db):
    await ledger.receive(db, sku="X", lot_no="L1", expiry_date="2026-01-20", quantity=1)

    assert [r["sku"] for r in await reports.alerts(db, days=10, today=TODAY)] == ["X"]
    assert await reports.alerts(db, days=9, today=TODAY) == []


async def test_alerts_empty_store(db):
    assert await reports.alerts(db, days=30, today=TODAY) == []


@pytest.mark.parametrize(
    "stock, min_level, expected",
    [(0, 0, "OUT"), (0, 5, "OUT"), (-1, 0, "OUT"), (4, 5, "LOW"), (5, 5, "OK"), (9, 0, "OK")],
)
def test_stock_status(stock, min_level, expected):
    assert reports.stock_status(stock, min_level) == expected


async def test_stats_empty_store(db):
    assert await reports.stats(db, days=30) == {
        "total_items": 0,
        "units_in_stock": 0,
        "low_stock": 0,
        "expiring_soon": 0,
    }


async def test_stats_counts(db):
    await _seed(db)

    out = await reports.stats(db, days=30, today=TODAY)

    assert out == {
        "total_items": 4,
        "units_in_stock": 113,
        "low_stock": 2,  # BND under 20, CTH has nothing against 3
        "expiring_soon": 1,  # DXT only, counted once
    }


async def test_stats_follow_dispatch(db):
    await _seed(db)
    await ledger.dispatch(db, sku="SWB", quantity=95)

    out = await reports.stats(db, days=30, today=TODAY)

    assert out["units_in_stock"] == 18
    assert out["low_stock"] == 3


async def test_recent_transactions_newest_first_and_enriched(db):
    await ledger.receive(db, sku="A", lot_no="L1", expiry_date="2030-01-01", quantity=5, location="Fridge")
    await ledger.dispatch(db, sku="A", quantity=2, reason="Theatre")

    rows = await reports.recent_transactions(db, limit=10)

    assert [r["type"] for r in rows] == ["DISPATCH", "RECEIVE"]
    assert rows[0]["qty_change"] == -2
    assert rows[0]["note"] == "Theatre"
    assert rows[1]["qty_change"] == 5
    for r in rows:
        assert r["sku"] == "A"
        assert r["lot_no"] == "L1"
        assert r["expiry"] == "2030-01-01"
        assert r["location"] == "Fridge"


async def test_recent_transactions_survive_removed_item(db, session_maker):
    await ledger.receive(db, sku="A", lot_no="L1", expiry_date="2030-01-01", quantity=5)
    async with session_maker() as s:
        await s.execute(delete(InventoryItem).where(InventoryItem.sku == "A"))
        await s.commit()

    (row,) = await reports.recent_transactions(db)

    assert row["type"] == "RECEIVE"
    assert row["qty_change"] == 5
    assert row["sku"] is None
    assert row["lot_no"] is None
    assert row["expiry"] is None


async def test_recent_transactions_limit(db):
    for i in range(5):
        await ledger.receive(db, sku="A", lot_no=f"L{i}", expiry_date="2030-01-01", quantity=1)

    assert len(await reports.recent_transactions(db, limit=3)) == 3
    assert len(await reports.recent_transactions(db)) == 5
    assert await reports.recent_transactions(db, limit=0) == []


@pytest.mark.parametrize("limit, expected", [(None, 20), (0, 0), (-5, 0), (1, 1), (50, 50), (100, 100), (1000, 100)])
def test_clamp_limit(limit, expected):
    assert reports.clamp_limit(limit) == expected


# ---------------------------------------------------------------------------
# stock view
# ---------------------------------------------------------------------------


async def test_list_items_joins_current_stock_ordered_by_name(db):
    await _seed(db)

    rows = await list_items(db)

    assert [r["sku"] for r in rows] == ["SWB", "BND", "CTH", "DXT"]
    assert {r["sku"]: r["current_stock"] for r in rows} == {"SWB": 100, "BND": 5, "CTH": 0, "DXT": 8}


async def test_list_items_search_is_case_insensitive_on_name_and_sku(db):
    await _seed(db)

    assert [r["sku"] for r in await list_items(db, search="BANDAGE")] == ["BND"]
    assert [r["sku"] for r in await list_items(db, search="dx")] == ["DXT"]
    assert [r["sku"] for r in await list_items(db, search="a")] == ["SWB", "BND", "CTH"]
    assert await list_items(db, search="%") == []
    assert len(await list_items(db, search="   ")) == 4

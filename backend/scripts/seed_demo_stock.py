import argparse
import asyncio
import logging
import sys
from datetime import date, timedelta
from pathlib import Path

"""
Seed a few demo items and lots through the ledger engine.

Items upsert by SKU. Lots are received again on every run and their quantity
adds up; pass --items-only to register items alone.

Run:
- inside backend/: `python scripts/seed_demo_stock.py`
- from repo root: `python backend/scripts/seed_demo_stock.py`
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core.errors import LedgerError  # noqa: E402
from core.logging_config import configure_logging  # noqa: E402
from db.database import async_session_maker, create_db_and_tables  # noqa: E402
from services import ledger  # noqa: E402

logger = logging.getLogger("scripts.seed_demo_stock")


DEMO_ITEMS = [
    # (sku, name, category, unit, min_level)
    ("GLV-NIT-M", "Nitrile gloves (M)", "PPE", "box", 20),
    ("SYR-5ML", "Syringe 5 ml", "Consumables", "unit", 200),
    ("PCM-500", "Paracetamol 500 mg", "Medication", "strip", 50),
    ("SAL-0.9-500", "Saline 0.9% 500 ml", "IV fluids", "bag", 30),
]

# (sku, lot_no, days until expiry, quantity, location)
DEMO_LOTS = [
    ("GLV-NIT-M", "G-2401", 400, 35, "A1"),
    ("SYR-5ML", "S-118", 20, 120, "B3"),
    ("SYR-5ML", "S-131", 300, 150, "B3"),
    ("PCM-500", "P-77", 10, 30, "C2"),
    ("SAL-0.9-500", "IV-9", 180, 12, "D1"),
]


async def seed(items_only: bool = False) -> None:
    await create_db_and_tables()

    registered = 0
    received = 0
    async with async_session_maker() as session:
        for sku, name, category, unit, min_level in DEMO_ITEMS:
            await ledger.register_item(
                session, name=name, sku=sku, category=category, unit=unit, min_level=min_level
            )
            registered += 1

        if not items_only:
            today = date.today()
            for sku, lot_no, days, qty, location in DEMO_LOTS:
                try:
                    await ledger.receive(
                        session,
                        sku=sku,
                        lot_no=lot_no,
                        expiry_date=today + timedelta(days=days),
                        quantity=qty,
                        location=location,
                    )
                    received += 1
                except LedgerError as e:
                    logger.error("receive %s/%s failed: %s", sku, lot_no, e.message)

    print(f"Registered items: {registered}, received lots: {received}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo medical stock")
    parser.add_argument("--items-only", action="store_true", help="Register items without receiving lots")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    configure_logging(args.log_level.upper())
    asyncio.run(seed(items_only=args.items_only))


if __name__ == "__main__":
    main()

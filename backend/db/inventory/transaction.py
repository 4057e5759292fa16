from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.sql import func

from ..database import Base


RECEIVE = "RECEIVE"
DISPATCH = "DISPATCH"
# reserved for manual corrections; no ledger operation writes it yet
ADJUST = "ADJUST"

TRANSACTION_TYPES = (RECEIVE, DISPATCH, ADJUST)


class InventoryTransaction(Base):
    """Immutable stock movement. References degrade to NULL when the item or lot goes away."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            "type IN ('RECEIVE','DISPATCH','ADJUST')",
            name="ck_transactions_type",
        ),
    )

    txn_id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(Integer, ForeignKey("items.item_id", ondelete="SET NULL"), nullable=True, index=True)
    lot_id = Column(Integer, ForeignKey("lots.lot_id", ondelete="SET NULL"), nullable=True, index=True)

    qty_change = Column(Integer, nullable=False)
    type = Column(Text, nullable=False)
    note = Column(Text, nullable=True)
    ts = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)


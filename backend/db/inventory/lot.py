from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class InventoryLot(Base):
    __tablename__ = "lots"
    __table_args__ = (
        UniqueConstraint("item_id", "lot_no", name="ux_lots_item_lot_no"),
        CheckConstraint("quantity >= 0", name="ck_lots_quantity_non_negative"),
    )

    lot_id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(
        Integer,
        ForeignKey("items.item_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lot_no = Column(Text, nullable=False)
    expiry_date = Column(Date, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    location = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    item = relationship("InventoryItem", back_populates="lots")

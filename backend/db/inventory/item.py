from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class InventoryItem(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("min_level >= 0", name="ck_items_min_level_non_negative"),
    )

    item_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    # case-sensitive, exact match
    sku = Column(String, nullable=False, unique=True, index=True)
    category = Column(Text, nullable=True)
    unit = Column(Text, nullable=True, default="unit")
    min_level = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    lots = relationship("InventoryLot", back_populates="item", passive_deletes=True)

    @property
    def to_schema(self):
        return {
            "item_id": self.item_id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "unit": self.unit,
            "min_level": int(self.min_level or 0),
            "is_active": bool(self.is_active),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

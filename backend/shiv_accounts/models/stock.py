"""
Stock movements - the quantity history of GOODS products
Closing stock = IN - OUT + ADJUSTMENT (adjustments carry their own sign)
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from shiv_accounts.db.base import Base


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    # IN / OUT / ADJUSTMENT
    movement_type = Column(String(20), nullable=False, comment="Movement type")
    quantity = Column(DECIMAL(12, 2), nullable=False, comment="Quantity")
    reference_type = Column(String(30), index=True, comment="Source document type")
    reference_id = Column(Integer, index=True, comment="Source document id")
    description = Column(Text, comment="Description")
    movement_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True, comment="Movement date")
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product")

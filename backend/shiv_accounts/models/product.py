"""
Product model - goods and services that appear on order lines
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from shiv_accounts.db.base import Base
from shiv_accounts.core.constants import ProductType


class Product(Base):
    """Product master"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, unique=True, index=True, comment="Product name")
    # GOODS / SERVICE; only GOODS move stock
    type = Column(String(20), nullable=False, default=ProductType.GOODS, comment="Product type")

    sales_price = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Sales price")
    purchase_price = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Purchase price")
    sales_tax_percent = Column(DECIMAL(5, 2), comment="Default sales GST %")
    purchase_tax_percent = Column(DECIMAL(5, 2), comment="Default purchase GST %")
    hsn_code = Column(String(20), index=True, comment="HSN/SAC code")
    category = Column(String(100), index=True, comment="Category")

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    created_by = relationship("User", foreign_keys=[created_by_id])

    @property
    def is_goods(self) -> bool:
        return self.type == ProductType.GOODS

    def __repr__(self):
        return f"<Product {self.id}: {self.name}>"

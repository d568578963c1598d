"""
Tax model - GST rates applied to order lines
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, DECIMAL

from shiv_accounts.db.base import Base
from shiv_accounts.core.constants import TaxMethod


class Tax(Base):
    """Tax rate

    computation_method:
    - PERCENTAGE: tax = base * rate / 100
    - FIXED_VALUE: tax = rate, independent of the base
    """
    __tablename__ = "taxes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True, comment="Tax name")
    computation_method = Column(String(20), nullable=False, default=TaxMethod.PERCENTAGE, comment="Computation method")
    rate = Column(DECIMAL(12, 2), nullable=False, comment="Percent or fixed amount")
    applicable_on_sales = Column(Boolean, nullable=False, default=True, comment="Usable on sales")
    applicable_on_purchase = Column(Boolean, nullable=False, default=True, comment="Usable on purchases")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Tax {self.name} {self.rate} ({self.computation_method})>"

"""
Chart of accounts
Accounts form a tree; a child always has the same type as its parent
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from shiv_accounts.db.base import Base


class ChartOfAccount(Base):
    __tablename__ = "chart_of_accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, comment="Account name")
    code = Column(String(20), nullable=False, unique=True, index=True, comment="Account code")
    # ASSET / LIABILITY / EQUITY / INCOME / EXPENSE
    type = Column(String(20), nullable=False, index=True, comment="Account type")
    parent_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    parent = relationship("ChartOfAccount", remote_side=[id], back_populates="children")
    children = relationship("ChartOfAccount", back_populates="parent")

    def __repr__(self):
        return f"<ChartOfAccount {self.code}: {self.name} ({self.type})>"

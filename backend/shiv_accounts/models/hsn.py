"""
HSN code cache - results of GST portal lookups kept locally
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime

from shiv_accounts.db.base import Base
from shiv_accounts.core.constants import HsnCategory


class HsnCode(Base):
    __tablename__ = "hsn_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, nullable=False, index=True, comment="HSN/SAC code")
    description = Column(Text, nullable=False, comment="Description")
    # PRODUCT / SERVICE / GENERAL
    category = Column(String(20), nullable=False, default=HsnCategory.GENERAL, comment="Category")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

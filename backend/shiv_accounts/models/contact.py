"""
Contact model - customers and vendors
A contact of type BOTH can appear on either side of a transaction
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from shiv_accounts.db.base import Base
from shiv_accounts.core.constants import ContactType


class Contact(Base):
    """Business partner"""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True, comment="Name")
    # CUSTOMER / VENDOR / BOTH
    type = Column(String(20), nullable=False, index=True, comment="Contact type")

    email = Column(String(255), unique=True, index=True, comment="Email")
    mobile = Column(String(15), comment="Mobile number")
    address = Column(Text, comment="Street address")
    city = Column(String(100), comment="City")
    state = Column(String(100), comment="State")
    pincode = Column(String(6), comment="PIN code")
    profile_image = Column(String(500), comment="Profile image URL")

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    created_by = relationship("User", foreign_keys=[created_by_id])

    def __repr__(self):
        return f"<Contact {self.id}: {self.name} ({self.type})>"

    @property
    def is_customer(self) -> bool:
        return self.type in (ContactType.CUSTOMER, ContactType.BOTH)

    @property
    def is_vendor(self) -> bool:
        return self.type in (ContactType.VENDOR, ContactType.BOTH)

"""
Payment records - money actually paid to vendors or received from customers
Each payment settles part or all of exactly one bill or invoice
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from shiv_accounts.db.base import Base
from shiv_accounts.core.constants import PaymentMethod


class BillPayment(Base):
    """Payment made against a vendor bill"""
    __tablename__ = "bill_payments"

    id = Column(Integer, primary_key=True, index=True)
    # Format: BP-123456-789
    payment_number = Column(String(50), unique=True, nullable=False, index=True, comment="Payment number")
    payment_date = Column(DateTime, nullable=False, default=datetime.utcnow, comment="Payment date")
    # CASH / BANK / CHEQUE / ONLINE
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.BANK, comment="Payment method")
    vendor_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    vendor_bill_id = Column(Integer, ForeignKey("vendor_bills.id"), nullable=False, index=True)
    amount = Column(DECIMAL(12, 2), nullable=False, comment="Amount")
    reference = Column(String(100), comment="Cheque / transaction reference")

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    vendor = relationship("Contact")
    vendor_bill = relationship("VendorBill", back_populates="payments")


class InvoicePayment(Base):
    """Payment received against a customer invoice"""
    __tablename__ = "invoice_payments"

    id = Column(Integer, primary_key=True, index=True)
    # Format: IP-123456-789
    payment_number = Column(String(50), unique=True, nullable=False, index=True, comment="Payment number")
    payment_date = Column(DateTime, nullable=False, default=datetime.utcnow, comment="Payment date")
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.BANK, comment="Payment method")
    customer_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    customer_invoice_id = Column(Integer, ForeignKey("customer_invoices.id"), nullable=False, index=True)
    amount = Column(DECIMAL(12, 2), nullable=False, comment="Amount")
    reference = Column(String(100), comment="Cheque / transaction reference")

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    customer = relationship("Contact")
    customer_invoice = relationship("CustomerInvoice", back_populates="payments")

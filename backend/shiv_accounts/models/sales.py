"""
Sales side documents
SalesOrder → (convert) → CustomerInvoice → InvoicePayment
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from shiv_accounts.db.base import Base
from shiv_accounts.core.constants import OrderStatus, PaymentStatus


class SalesOrder(Base):
    """Sales order from a customer"""
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, index=True)
    # Format: SO-123456-789
    so_number = Column(String(50), unique=True, nullable=False, index=True, comment="SO number")
    so_date = Column(DateTime, nullable=False, default=datetime.utcnow, comment="SO date")
    customer_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    so_ref = Column(String(100), comment="Customer reference")
    # DRAFT / CONFIRMED / CANCELLED / CONVERTED
    status = Column(String(20), nullable=False, default=OrderStatus.DRAFT, index=True, comment="Status")

    subtotal = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Untaxed amount")
    tax_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Tax amount")
    total = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Total")

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Contact")
    items = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.id",
    )
    customer_invoices = relationship("CustomerInvoice", back_populates="sales_order")

    def __repr__(self):
        return f"<SalesOrder {self.so_number} ({self.status})>"


class SalesOrderItem(Base):
    __tablename__ = "sales_order_items"

    id = Column(Integer, primary_key=True, index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    tax_id = Column(Integer, ForeignKey("taxes.id"), nullable=True)
    quantity = Column(DECIMAL(12, 2), nullable=False, comment="Quantity")
    unit_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit price")
    tax_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Line tax")
    total = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Line total incl. tax")

    sales_order = relationship("SalesOrder", back_populates="items")
    product = relationship("Product")
    tax = relationship("Tax")


class CustomerInvoice(Base):
    """Customer invoice - amount receivable from a customer"""
    __tablename__ = "customer_invoices"

    id = Column(Integer, primary_key=True, index=True)
    # Format: CI-123456-789
    invoice_number = Column(String(50), unique=True, nullable=False, index=True, comment="Invoice number")
    invoice_date = Column(DateTime, nullable=False, default=datetime.utcnow, comment="Invoice date")
    due_date = Column(DateTime, nullable=False, comment="Due date")
    customer_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id"), nullable=True, index=True, comment="Source SO")
    invoice_reference = Column(String(100), comment="Customer reference")
    # UNPAID / PARTIAL / PAID
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID, index=True, comment="Payment status")

    subtotal = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Untaxed amount")
    tax_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Tax amount")
    total = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Total")
    paid_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Paid so far")

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Contact")
    sales_order = relationship("SalesOrder", back_populates="customer_invoices")
    items = relationship(
        "CustomerInvoiceItem",
        back_populates="customer_invoice",
        cascade="all, delete-orphan",
        order_by="CustomerInvoiceItem.id",
    )
    payments = relationship("InvoicePayment", back_populates="customer_invoice", order_by="InvoicePayment.payment_date.desc()")

    @property
    def remaining_amount(self) -> Decimal:
        return (self.total or Decimal("0")) - (self.paid_amount or Decimal("0"))

    def __repr__(self):
        return f"<CustomerInvoice {self.invoice_number} ({self.payment_status})>"


class CustomerInvoiceItem(Base):
    __tablename__ = "customer_invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    customer_invoice_id = Column(Integer, ForeignKey("customer_invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    tax_id = Column(Integer, ForeignKey("taxes.id"), nullable=True)
    quantity = Column(DECIMAL(12, 2), nullable=False, comment="Quantity")
    unit_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit price")
    tax_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Line tax")
    total = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Line total incl. tax")

    customer_invoice = relationship("CustomerInvoice", back_populates="items")
    product = relationship("Product")
    tax = relationship("Tax")

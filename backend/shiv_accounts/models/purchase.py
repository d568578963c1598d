"""
Purchase side documents
PurchaseOrder → (convert) → VendorBill → BillPayment
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from shiv_accounts.db.base import Base
from shiv_accounts.core.constants import OrderStatus, PaymentStatus


class PurchaseOrder(Base):
    """Purchase order to a vendor"""
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)
    # Format: PO-123456-789
    po_number = Column(String(50), unique=True, nullable=False, index=True, comment="PO number")
    po_date = Column(DateTime, nullable=False, default=datetime.utcnow, comment="PO date")
    vendor_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    vendor_ref = Column(String(100), comment="Vendor reference")
    # DRAFT / CONFIRMED / CANCELLED / CONVERTED
    status = Column(String(20), nullable=False, default=OrderStatus.DRAFT, index=True, comment="Status")

    subtotal = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Untaxed amount")
    tax_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Tax amount")
    total = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Total")

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = relationship("Contact")
    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )
    vendor_bills = relationship("VendorBill", back_populates="purchase_order")

    def __repr__(self):
        return f"<PurchaseOrder {self.po_number} ({self.status})>"


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    tax_id = Column(Integer, ForeignKey("taxes.id"), nullable=True)
    quantity = Column(DECIMAL(12, 2), nullable=False, comment="Quantity")
    unit_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit price")
    tax_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Line tax")
    total = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Line total incl. tax")

    purchase_order = relationship("PurchaseOrder", back_populates="items")
    product = relationship("Product")
    tax = relationship("Tax")


class VendorBill(Base):
    """Vendor bill - amount payable to a vendor"""
    __tablename__ = "vendor_bills"

    id = Column(Integer, primary_key=True, index=True)
    # Format: VB-123456-789
    bill_number = Column(String(50), unique=True, nullable=False, index=True, comment="Bill number")
    bill_date = Column(DateTime, nullable=False, default=datetime.utcnow, comment="Bill date")
    due_date = Column(DateTime, nullable=False, comment="Due date")
    vendor_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=True, index=True, comment="Source PO")
    bill_reference = Column(String(100), comment="Vendor's bill reference")
    # UNPAID / PARTIAL / PAID
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID, index=True, comment="Payment status")

    subtotal = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Untaxed amount")
    tax_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Tax amount")
    total = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Total")
    paid_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Paid so far")

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = relationship("Contact")
    purchase_order = relationship("PurchaseOrder", back_populates="vendor_bills")
    items = relationship(
        "VendorBillItem",
        back_populates="vendor_bill",
        cascade="all, delete-orphan",
        order_by="VendorBillItem.id",
    )
    payments = relationship("BillPayment", back_populates="vendor_bill", order_by="BillPayment.payment_date.desc()")

    @property
    def remaining_amount(self) -> Decimal:
        return (self.total or Decimal("0")) - (self.paid_amount or Decimal("0"))

    def __repr__(self):
        return f"<VendorBill {self.bill_number} ({self.payment_status})>"


class VendorBillItem(Base):
    __tablename__ = "vendor_bill_items"

    id = Column(Integer, primary_key=True, index=True)
    vendor_bill_id = Column(Integer, ForeignKey("vendor_bills.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    tax_id = Column(Integer, ForeignKey("taxes.id"), nullable=True)
    quantity = Column(DECIMAL(12, 2), nullable=False, comment="Quantity")
    unit_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit price")
    tax_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Line tax")
    total = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Line total incl. tax")

    vendor_bill = relationship("VendorBill", back_populates="items")
    product = relationship("Product")
    tax = relationship("Tax")

from shiv_accounts.models.user import User
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.product import Product
from shiv_accounts.models.tax import Tax
from shiv_accounts.models.account import ChartOfAccount
from shiv_accounts.models.purchase import PurchaseOrder, PurchaseOrderItem, VendorBill, VendorBillItem
from shiv_accounts.models.sales import SalesOrder, SalesOrderItem, CustomerInvoice, CustomerInvoiceItem
from shiv_accounts.models.payment import BillPayment, InvoicePayment
from shiv_accounts.models.ledger import LedgerEntry
from shiv_accounts.models.stock import StockMovement
from shiv_accounts.models.hsn import HsnCode

__all__ = [
    "User",
    "Contact",
    "Product",
    "Tax",
    "ChartOfAccount",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "VendorBill",
    "VendorBillItem",
    "SalesOrder",
    "SalesOrderItem",
    "CustomerInvoice",
    "CustomerInvoiceItem",
    "BillPayment",
    "InvoicePayment",
    "LedgerEntry",
    "StockMovement",
    "HsnCode",
]

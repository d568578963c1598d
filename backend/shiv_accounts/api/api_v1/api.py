"""API router aggregation"""
from fastapi import APIRouter

from shiv_accounts.api.api_v1.endpoints import (
    auth, contacts, products, taxes, chart_of_accounts, hsn,
    purchase_orders, sales_orders, vendor_bills, customer_invoices,
    payments, ledger_entries, stock_movements, reports
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])

# Masters
api_router.include_router(contacts.router, prefix="/contacts", tags=["Contacts"])
api_router.include_router(products.router, prefix="/products", tags=["Products"])
api_router.include_router(taxes.router, prefix="/taxes", tags=["Taxes"])
api_router.include_router(chart_of_accounts.router, prefix="/chart-of-accounts", tags=["Chart of Accounts"])
api_router.include_router(hsn.router, prefix="/hsn", tags=["HSN Codes"])

# Purchase and sales flows
api_router.include_router(purchase_orders.router, prefix="/purchase-orders", tags=["Purchase Orders"])
api_router.include_router(vendor_bills.router, prefix="/vendor-bills", tags=["Vendor Bills"])
api_router.include_router(sales_orders.router, prefix="/sales-orders", tags=["Sales Orders"])
api_router.include_router(customer_invoices.router, prefix="/customer-invoices", tags=["Customer Invoices"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])

# Books and reports
api_router.include_router(ledger_entries.router, prefix="/ledger-entries", tags=["Ledger"])
api_router.include_router(stock_movements.router, prefix="/stock-movements", tags=["Stock"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])

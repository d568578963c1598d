"""
Enumerated status and type values stored as plain strings
"""


class UserRole:
    ADMIN = "ADMIN"
    INVOICING_USER = "INVOICING_USER"
    CONTACT = "CONTACT"
    ALL = (ADMIN, INVOICING_USER, CONTACT)


class UserStatus:
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    ALL = (ACTIVE, INACTIVE, SUSPENDED)


class ContactType:
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"
    BOTH = "BOTH"
    ALL = (CUSTOMER, VENDOR, BOTH)


class ProductType:
    GOODS = "GOODS"
    SERVICE = "SERVICE"
    ALL = (GOODS, SERVICE)


class TaxMethod:
    PERCENTAGE = "PERCENTAGE"
    FIXED_VALUE = "FIXED_VALUE"
    ALL = (PERCENTAGE, FIXED_VALUE)


class AccountType:
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    ALL = (ASSET, LIABILITY, EQUITY, INCOME, EXPENSE)
    # Types whose balance grows on the debit side
    DEBIT_NORMAL = (ASSET, EXPENSE)


class OrderStatus:
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    CONVERTED = "CONVERTED"
    ALL = (DRAFT, CONFIRMED, CANCELLED, CONVERTED)


class PaymentStatus:
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    ALL = (UNPAID, PARTIAL, PAID)


class PaymentMethod:
    CASH = "CASH"
    BANK = "BANK"
    CHEQUE = "CHEQUE"
    ONLINE = "ONLINE"
    ALL = (CASH, BANK, CHEQUE, ONLINE)


class EntryType:
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    ALL = (DEBIT, CREDIT)


class MovementType:
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"
    ALL = (IN, OUT, ADJUSTMENT)


class HsnCategory:
    PRODUCT = "PRODUCT"
    SERVICE = "SERVICE"
    GENERAL = "GENERAL"
    ALL = (PRODUCT, SERVICE, GENERAL)


class ReferenceType:
    """Source document recorded on ledger entries and stock movements"""
    VENDOR_BILL = "VENDOR_BILL"
    CUSTOMER_INVOICE = "CUSTOMER_INVOICE"
    BILL_PAYMENT = "BILL_PAYMENT"
    INVOICE_PAYMENT = "INVOICE_PAYMENT"
    JOURNAL = "JOURNAL"
    STOCK_ADJUSTMENT = "STOCK_ADJUSTMENT"


# Document number prefixes
PREFIX_PURCHASE_ORDER = "PO"
PREFIX_SALES_ORDER = "SO"
PREFIX_VENDOR_BILL = "VB"
PREFIX_CUSTOMER_INVOICE = "CI"
PREFIX_BILL_PAYMENT = "BP"
PREFIX_INVOICE_PAYMENT = "IP"

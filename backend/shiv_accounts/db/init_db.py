import asyncio
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.core.config import settings
from shiv_accounts.core.constants import (
    AccountType, ContactType, HsnCategory, ProductType, TaxMethod, UserRole, UserStatus
)
from shiv_accounts.core.security import hash_password
from shiv_accounts.db.base import Base
from shiv_accounts.db.session import engine, SessionLocal

# Import every model so the tables are registered on Base.metadata
from shiv_accounts.models import (
    User, Contact, Product, Tax, ChartOfAccount, HsnCode
)

logger = logging.getLogger(__name__)

# (name, type, code)
DEFAULT_ACCOUNTS = [
    ("Cash", AccountType.ASSET, "1001"),
    ("Bank Account", AccountType.ASSET, "1002"),
    ("Accounts Receivable", AccountType.ASSET, "1003"),
    ("Inventory", AccountType.ASSET, "1004"),
    ("Accounts Payable", AccountType.LIABILITY, "2001"),
    ("GST Payable", AccountType.LIABILITY, "2002"),
    ("Owner Equity", AccountType.EQUITY, "3001"),
    ("Sales Income", AccountType.INCOME, "4001"),
    ("Service Income", AccountType.INCOME, "4002"),
    ("Purchases", AccountType.EXPENSE, "5001"),
    ("Office Expenses", AccountType.EXPENSE, "5002"),
]

DEFAULT_TAX_RATES = [5, 12, 18, 28]

DEFAULT_HSN_CODES = [
    ("9401", "Seats, whether or not convertible into beds, and parts thereof", HsnCategory.PRODUCT),
    ("9403", "Other furniture and parts thereof", HsnCategory.PRODUCT),
    ("9983", "Other professional, technical and business services", HsnCategory.SERVICE),
]

DEMO_CONTACTS = [
    ("Nimesh Pathak", ContactType.CUSTOMER, "customer1@example.com", "9876543210", "Mumbai", "Maharashtra", "400001"),
    ("Azure Furniture", ContactType.VENDOR, "vendor1@example.com", "9876543211", "Delhi", "Delhi", "110001"),
    ("Shiv Furniture", ContactType.BOTH, "both1@example.com", "9876543212", "Bangalore", "Karnataka", "560001"),
]

# (name, type, sales price, purchase price, sales tax %, purchase tax %, hsn, category)
DEMO_PRODUCTS = [
    ("Office Chair", ProductType.GOODS, 5000, 3500, 18, 18, "9401", "Furniture"),
    ("Wooden Table", ProductType.GOODS, 15000, 10000, 18, 18, "9403", "Furniture"),
    ("Sofa Set", ProductType.GOODS, 25000, 18000, 18, 18, "9401", "Furniture"),
    ("Dining Table", ProductType.GOODS, 20000, 15000, 18, 18, "9403", "Furniture"),
    ("Consultation Service", ProductType.SERVICE, 1000, 0, 18, 0, "9983", "Services"),
]


async def ensure_tables_exist() -> None:
    """
    Create missing tables (called on application start)
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_reference_data(db: AsyncSession) -> dict:
    """
    Insert the admin user, chart of accounts, GST rates and sample HSN codes
    when they are missing. Safe to run on every start.
    """
    created = {"users": 0, "accounts": 0, "taxes": 0, "hsn_codes": 0}

    result = await db.execute(select(User).where(User.email == settings.ADMIN_EMAIL))
    if not result.scalar_one_or_none():
        db.add(User(
            email=settings.ADMIN_EMAIL,
            login_id=settings.ADMIN_LOGIN_ID,
            password=hash_password(settings.ADMIN_PASSWORD),
            name="Admin User",
            role=UserRole.ADMIN,
            status=UserStatus.ACTIVE,
        ))
        created["users"] += 1

    existing_codes = set((await db.execute(select(ChartOfAccount.code))).scalars().all())
    for name, account_type, code in DEFAULT_ACCOUNTS:
        if code not in existing_codes:
            db.add(ChartOfAccount(name=name, type=account_type, code=code))
            created["accounts"] += 1

    existing_taxes = set((await db.execute(select(Tax.name))).scalars().all())
    for rate in DEFAULT_TAX_RATES:
        name = f"GST {rate}%"
        if name not in existing_taxes:
            db.add(Tax(
                name=name,
                computation_method=TaxMethod.PERCENTAGE,
                rate=Decimal(rate),
                applicable_on_sales=True,
                applicable_on_purchase=True,
            ))
            created["taxes"] += 1

    existing_hsn = set((await db.execute(select(HsnCode.code))).scalars().all())
    for code, description, category in DEFAULT_HSN_CODES:
        if code not in existing_hsn:
            db.add(HsnCode(code=code, description=description, category=category))
            created["hsn_codes"] += 1

    await db.commit()
    return created


async def seed_demo_data(db: AsyncSession) -> dict:
    """Sample contacts and products for a fresh installation"""
    created = {"contacts": 0, "products": 0}

    existing_emails = set((await db.execute(select(Contact.email))).scalars().all())
    for name, contact_type, email, mobile, city, state, pincode in DEMO_CONTACTS:
        if email not in existing_emails:
            db.add(Contact(
                name=name, type=contact_type, email=email, mobile=mobile,
                city=city, state=state, pincode=pincode,
            ))
            created["contacts"] += 1

    existing_products = set((await db.execute(select(Product.name))).scalars().all())
    for name, product_type, sales, purchase, sales_tax, purchase_tax, hsn, category in DEMO_PRODUCTS:
        if name not in existing_products:
            db.add(Product(
                name=name,
                type=product_type,
                sales_price=Decimal(sales),
                purchase_price=Decimal(purchase),
                sales_tax_percent=Decimal(sales_tax),
                purchase_tax_percent=Decimal(purchase_tax),
                hsn_code=hsn,
                category=category,
            ))
            created["products"] += 1

    await db.commit()
    return created


async def init_db() -> None:
    """
    Create tables and seed data from the command line
    """
    await ensure_tables_exist()
    async with SessionLocal() as db:
        created = await seed_reference_data(db)
        logger.info(f"Reference data: {created}")
        if settings.SEED_DEMO_DATA:
            created = await seed_demo_data(db)
            logger.info(f"Demo data: {created}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_db())

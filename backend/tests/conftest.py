# tests/conftest.py
"""
Pytest fixtures for the Shiv Accounts API.

Every test gets its own in-memory SQLite database with the reference data
(admin user, chart of accounts, GST rates, HSN samples) already seeded.
"""

import os
import tempfile

os.environ.setdefault("SQLITE_DATABASE_URI", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTO_BACKUP_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="shiv_accounts_logs_"))

from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import shiv_accounts.models  # noqa: F401  registers every table
from shiv_accounts.core.config import settings
from shiv_accounts.core.deps import get_db
from shiv_accounts.db.base import Base
from shiv_accounts.db.init_db import seed_reference_data
from shiv_accounts.main import app

API = settings.API_V1_STR


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as db:
        await seed_reference_data(db)

    yield factory
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_headers(client):
    response = await client.post(f"{API}/auth/login", json={
        "login_id": settings.ADMIN_LOGIN_ID,
        "password": settings.ADMIN_PASSWORD,
    })
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
async def user_headers(client):
    """A non-admin invoicing user"""
    response = await client.post(f"{API}/auth/register", json={
        "name": "Invoicing User",
        "email": "clerk@shivaccounts.com",
        "login_id": "clerk",
        "password": "secret123",
    })
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


# =============================================================================
# Master data fixtures
# =============================================================================

@pytest.fixture
async def vendor(client, admin_headers):
    response = await client.post(f"{API}/contacts", headers=admin_headers, json={
        "name": "Azure Furniture Supplies",
        "type": "VENDOR",
        "email": "sales@azurefurniture.in",
        "mobile": "9876543210",
        "pincode": "380001",
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def customer(client, admin_headers):
    response = await client.post(f"{API}/contacts", headers=admin_headers, json={
        "name": "Nimesh Pathak",
        "type": "CUSTOMER",
        "email": "nimesh.pathak@gmail.com",
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def chair(client, admin_headers):
    response = await client.post(f"{API}/products", headers=admin_headers, json={
        "name": "Office Chair",
        "type": "GOODS",
        "sales_price": 1500,
        "purchase_price": 1000,
        "hsn_code": "9401",
        "category": "Furniture",
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def installation(client, admin_headers):
    response = await client.post(f"{API}/products", headers=admin_headers, json={
        "name": "Installation Service",
        "type": "SERVICE",
        "sales_price": 500,
        "purchase_price": 0,
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def gst18(client, admin_headers):
    response = await client.get(f"{API}/taxes", headers=admin_headers, params={"search": "GST 18%"})
    assert response.status_code == 200, response.text
    return response.json()["data"][0]


@pytest.fixture
def due_date():
    return (datetime.utcnow() + timedelta(days=30)).isoformat()

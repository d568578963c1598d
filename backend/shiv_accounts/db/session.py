from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from shiv_accounts.core.config import settings


def _async_uri(uri: str) -> str:
    """Plain sqlite URIs are switched to the aiosqlite driver"""
    if uri.startswith("sqlite:///"):
        return uri.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return uri


engine = create_async_engine(
    _async_uri(settings.SQLITE_DATABASE_URI),
    echo=settings.SQL_DEBUG,
    future=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

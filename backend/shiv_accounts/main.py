from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shiv_accounts.api.api_v1.api import api_router
from shiv_accounts.core.config import settings
from shiv_accounts.core.logging_config import setup_logging, get_logger
from shiv_accounts.services.scheduler import init_scheduler, shutdown_scheduler
from shiv_accounts.db.session import SessionLocal
from shiv_accounts.db.init_db import ensure_tables_exist, seed_reference_data, seed_demo_data

setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Shiv Accounts...")

    await ensure_tables_exist()
    logger.info("📊 Database tables ready")

    async with SessionLocal() as db:
        created = await seed_reference_data(db)
        if any(created.values()):
            logger.info(f"🌱 Seeded reference data: {created}")
        if settings.SEED_DEMO_DATA:
            created = await seed_demo_data(db)
            logger.info(f"🌱 Seeded demo data: {created}")

    init_scheduler()
    yield
    logger.info("🛑 Shutting down...")
    shutdown_scheduler()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="Accounting for small businesses - masters, purchases, sales, payments and reports",
    lifespan=lifespan
)

if settings.BACKEND_CORS_ORIGINS:
    logger.info(f"CORS origins: {settings.BACKEND_CORS_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}

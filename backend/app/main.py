"""Bahia PMS: FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.apartments import router as apartments_router
from app.api.v1.auth import router as auth_router
from app.api.v1.bookings import router as bookings_router
from app.api.v1.commissions import router as commissions_router
from app.api.v1.customers import router as customers_router
from app.api.v1.expenses import router as expenses_router
from app.api.v1.owners import router as owners_router
from app.api.v1.reports import router as reports_router
from app.api.v1.services import router as services_router
from app.api.v1.users import router as users_router
from app.config import settings

# Configure root logger so all app.* loggers output to stderr (captured by Docker).
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    from app.database import async_session_factory, create_all, engine
    from app.services.bootstrap import bootstrap

    # Startup
    if settings.create_tables_on_startup:
        await create_all()
    async with async_session_factory() as session:
        await bootstrap(session)
        await session.commit()
    logger.info("%s %s ready (USD rate %s EGP)", settings.app_name, settings.app_version, settings.usd_to_egp_rate)

    yield

    # Shutdown: dispose engine connections
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Property-management backend for a short-term-rental operation: units, bookings, folios and reports.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(owners_router)
app.include_router(apartments_router)
app.include_router(customers_router)
app.include_router(services_router)
app.include_router(bookings_router)
app.include_router(expenses_router)
app.include_router(commissions_router)
app.include_router(reports_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }

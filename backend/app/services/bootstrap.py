"""First-start data: the default admin account and the starter service catalog."""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.passwords import hash_password
from app.auth.permissions import resolve_permissions
from app.config import settings
from app.models.catalog_service import CatalogService
from app.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_SERVICES: tuple[tuple[str, Decimal], ...] = (
    ("Standard Cleaning", Decimal("200")),
    ("Poolside Service", Decimal("150")),
    ("Airport Transfer", Decimal("500")),
    ("Continental Breakfast", Decimal("100")),
)


async def ensure_default_admin(db: AsyncSession) -> User | None:
    """Create the configured admin account if no user exists yet."""
    existing = await db.scalar(select(func.count()).select_from(User))
    if existing:
        return None

    admin = User(
        username=settings.default_admin_username,
        hashed_password=hash_password(settings.default_admin_password),
        name=settings.default_admin_name,
        role="admin",
        permissions=resolve_permissions("admin"),
        is_active=True,
    )
    db.add(admin)
    await db.flush()
    logger.info("Created default admin account %r", admin.username)
    return admin


async def ensure_default_services(db: AsyncSession) -> int:
    """Seed the starter catalog when it is empty. Returns the number created."""
    existing = await db.scalar(select(func.count()).select_from(CatalogService))
    if existing:
        return 0

    for name, price in DEFAULT_SERVICES:
        db.add(CatalogService(name=name, price=price, is_free=False))
    await db.flush()
    logger.info("Seeded %d catalog services", len(DEFAULT_SERVICES))
    return len(DEFAULT_SERVICES)


async def bootstrap(db: AsyncSession) -> None:
    await ensure_default_admin(db)
    if settings.seed_default_services:
        await ensure_default_services(db)

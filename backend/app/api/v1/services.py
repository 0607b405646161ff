"""Service catalog CRUD API router.

Editing or deleting a catalog entry never touches bookings: stay services
keep the name and price they were copied with.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.models.catalog_service import CatalogService
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.catalog import (
    CatalogServiceCreate,
    CatalogServiceListResponse,
    CatalogServiceResponse,
    CatalogServiceUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/services", tags=["services"])


async def _get_service_or_404(db: AsyncSession, service_id: uuid.UUID) -> CatalogService:
    service = await db.get(CatalogService, service_id)
    if service is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    return service


async def _check_name(db: AsyncSession, name: str, exclude_id: uuid.UUID | None = None) -> None:
    query = select(CatalogService.id).where(CatalogService.name == name)
    if exclude_id is not None:
        query = query.where(CatalogService.id != exclude_id)
    if await db.scalar(query) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Service {name!r} already exists")


@router.get("", response_model=CatalogServiceListResponse, summary="List catalog services")
async def list_services(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_services")),
) -> dict:
    result = await db.execute(select(CatalogService).order_by(CatalogService.name))
    items = list(result.scalars().all())
    return {"items": items, "total": len(items)}


@router.post(
    "",
    response_model=CatalogServiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a catalog service",
)
async def create_service(
    body: CatalogServiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_services")),
) -> CatalogService:
    await _check_name(db, body.name)
    service = CatalogService(**body.model_dump())
    db.add(service)
    await db.flush()
    await db.refresh(service)
    logger.info("%s added catalog service %s at %s EGP", current_user.username, service.name, service.price)
    return service


@router.put("/{service_id}", response_model=CatalogServiceResponse, summary="Update a catalog service")
async def update_service(
    service_id: uuid.UUID,
    body: CatalogServiceUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_services")),
) -> CatalogService:
    service = await _get_service_or_404(db, service_id)
    update_data = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}

    if "name" in update_data and update_data["name"] != service.name:
        await _check_name(db, update_data["name"], exclude_id=service.id)

    for field, value in update_data.items():
        setattr(service, field, value)

    db.add(service)
    await db.flush()
    await db.refresh(service)
    return service


@router.delete("/{service_id}", response_model=MessageResponse, summary="Delete a catalog service")
async def delete_service(
    service_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_services")),
) -> MessageResponse:
    service = await _get_service_or_404(db, service_id)
    await db.delete(service)
    await db.flush()
    logger.info("%s deleted catalog service %s", current_user.username, service.name)
    return MessageResponse(message="Service deleted")

"""Unit owners CRUD API router."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.models.apartment import Apartment
from app.models.owner import Owner
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.owner import (
    OwnerCreate,
    OwnerDetailResponse,
    OwnerListResponse,
    OwnerResponse,
    OwnerUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/owners", tags=["owners"])


async def _get_owner_or_404(db: AsyncSession, owner_id: uuid.UUID) -> Owner:
    owner = await db.get(Owner, owner_id)
    if owner is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Owner not found")
    return owner


async def _detail(db: AsyncSession, owner: Owner) -> OwnerDetailResponse:
    result = await db.execute(
        select(Apartment.unit_number).where(Apartment.owner_id == owner.id).order_by(Apartment.unit_number)
    )
    response = OwnerDetailResponse.model_validate(owner)
    response.unit_numbers = list(result.scalars().all())
    return response


@router.post(
    "",
    response_model=OwnerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an owner",
)
async def create_owner(
    body: OwnerCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_units")),
) -> Owner:
    owner = Owner(**body.model_dump())
    db.add(owner)
    await db.flush()
    await db.refresh(owner)
    logger.info("%s registered owner %s", current_user.username, owner.name)
    return owner


@router.get("", response_model=OwnerListResponse, summary="List owners")
async def list_owners(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_units")),
) -> dict:
    result = await db.execute(select(Owner).order_by(Owner.name))
    items = list(result.scalars().all())
    return {"items": items, "total": len(items)}


@router.get("/{owner_id}", response_model=OwnerDetailResponse, summary="Get an owner with their units")
async def get_owner(
    owner_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_units")),
) -> OwnerDetailResponse:
    return await _detail(db, await _get_owner_or_404(db, owner_id))


@router.put("/{owner_id}", response_model=OwnerDetailResponse, summary="Update an owner")
async def update_owner(
    owner_id: uuid.UUID,
    body: OwnerUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_units")),
) -> OwnerDetailResponse:
    """Partially update an owner. A percentage contract must stay within 0-100."""
    owner = await _get_owner_or_404(db, owner_id)
    update_data = {
        field: value
        for field, value in body.model_dump(exclude_unset=True).items()
        if value is not None or field in {"phone", "email", "bank_account"}
    }

    contract_type = update_data.get("contract_type", owner.contract_type)
    contract_value = update_data.get("contract_value", owner.contract_value)
    if contract_type == "Percentage" and contract_value > 100:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="contract_value must be between 0 and 100 for Percentage contracts",
        )

    for field, value in update_data.items():
        setattr(owner, field, value)

    db.add(owner)
    await db.flush()
    await db.refresh(owner)
    logger.info("%s updated owner %s", current_user.username, owner.name)
    return await _detail(db, owner)


@router.delete("/{owner_id}", response_model=MessageResponse, summary="Delete an owner")
async def delete_owner(
    owner_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_units")),
) -> MessageResponse:
    """Delete an owner. Their units stay, unassigned."""
    owner = await _get_owner_or_404(db, owner_id)
    await db.execute(update(Apartment).where(Apartment.owner_id == owner.id).values(owner_id=None))
    await db.delete(owner)
    await db.flush()
    logger.info("%s deleted owner %s", current_user.username, owner.name)
    return MessageResponse(message="Owner deleted")

"""Apartments (units and rate cards) CRUD API router."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.models.apartment import Apartment
from app.models.expense import Expense
from app.models.owner import Owner
from app.models.user import User
from app.schemas.apartment import (
    ApartmentCreate,
    ApartmentListResponse,
    ApartmentResponse,
    ApartmentUpdate,
)
from app.schemas.auth import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/apartments", tags=["apartments"])


async def _get_apartment_or_404(db: AsyncSession, apartment_id: uuid.UUID) -> Apartment:
    apartment = await db.get(Apartment, apartment_id)
    if apartment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Apartment not found",
        )
    return apartment


async def _check_unit_number(db: AsyncSession, unit_number: str, exclude_id: uuid.UUID | None = None) -> None:
    query = select(Apartment.id).where(Apartment.unit_number == unit_number)
    if exclude_id is not None:
        query = query.where(Apartment.id != exclude_id)
    if await db.scalar(query) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Unit {unit_number} already exists",
        )


async def _check_owner(db: AsyncSession, owner_id: uuid.UUID | None) -> None:
    if owner_id is not None and await db.get(Owner, owner_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Owner not found",
        )


@router.post(
    "",
    response_model=ApartmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a unit",
)
async def create_apartment(
    body: ApartmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_units")),
) -> ApartmentResponse:
    """Add a unit with its EGP rate card. Unit numbers are unique."""
    await _check_unit_number(db, body.unit_number)
    await _check_owner(db, body.owner_id)

    apartment = Apartment(**body.model_dump())
    db.add(apartment)
    await db.flush()
    await db.refresh(apartment)

    logger.info("%s added unit %s", current_user.username, apartment.unit_number)
    return ApartmentResponse.model_validate(apartment)


@router.get(
    "",
    response_model=ApartmentListResponse,
    summary="List units",
)
async def list_apartments(
    status_filter: str | None = Query(None, alias="status", description="Filter by unit status"),
    owner_id: uuid.UUID | None = Query(None, description="Filter by owner"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(100, ge=1, le=500, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_units")),
) -> ApartmentListResponse:
    """Return units ordered by unit number."""
    base_query = select(Apartment)
    count_query = select(func.count()).select_from(Apartment)

    if status_filter is not None:
        base_query = base_query.where(Apartment.status == status_filter)
        count_query = count_query.where(Apartment.status == status_filter)
    if owner_id is not None:
        base_query = base_query.where(Apartment.owner_id == owner_id)
        count_query = count_query.where(Apartment.owner_id == owner_id)

    total = (await db.execute(count_query)).scalar_one()
    result = await db.execute(base_query.order_by(Apartment.unit_number).offset(skip).limit(limit))
    items = result.scalars().all()

    return ApartmentListResponse(
        items=[ApartmentResponse.model_validate(a) for a in items],
        total=total,
    )


@router.get(
    "/{apartment_id}",
    response_model=ApartmentResponse,
    summary="Get a unit by ID",
)
async def get_apartment(
    apartment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_units")),
) -> ApartmentResponse:
    apartment = await _get_apartment_or_404(db, apartment_id)
    return ApartmentResponse.model_validate(apartment)


@router.put(
    "/{apartment_id}",
    response_model=ApartmentResponse,
    summary="Update a unit",
)
async def update_apartment(
    apartment_id: uuid.UUID,
    body: ApartmentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_units")),
) -> ApartmentResponse:
    """Partially update a unit.

    Rate changes apply to bookings committed afterwards. A saved booking
    keeps the rate card it was committed with through every later edit and
    folio action, and only picks up new prices when it is moved to a unit.
    """
    apartment = await _get_apartment_or_404(db, apartment_id)
    update_data = body.model_dump(exclude_unset=True)

    if update_data.get("unit_number") and update_data["unit_number"] != apartment.unit_number:
        await _check_unit_number(db, update_data["unit_number"], exclude_id=apartment.id)
    if "owner_id" in update_data:
        await _check_owner(db, update_data["owner_id"])

    for field, value in update_data.items():
        if value is None and field != "owner_id" and field != "view":
            continue
        setattr(apartment, field, value)

    db.add(apartment)
    await db.flush()
    await db.refresh(apartment)

    logger.info("%s updated unit %s", current_user.username, apartment.unit_number)
    return ApartmentResponse.model_validate(apartment)


@router.delete(
    "/{apartment_id}",
    response_model=MessageResponse,
    summary="Delete a unit",
)
async def delete_apartment(
    apartment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_units")),
) -> MessageResponse:
    """Delete a unit and cascade-delete its bookings."""
    apartment = await _get_apartment_or_404(db, apartment_id)

    await db.execute(update(Expense).where(Expense.apartment_id == apartment.id).values(apartment_id=None))
    await db.delete(apartment)
    await db.flush()

    logger.info("%s deleted unit %s", current_user.username, apartment.unit_number)
    return MessageResponse(message="Apartment deleted")

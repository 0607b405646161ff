"""Customers (guests) CRUD API router."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.models.booking import Booking
from app.models.customer import Customer
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.booking import BookingListResponse
from app.schemas.customer import (
    CustomerCreate,
    CustomerListResponse,
    CustomerResponse,
    CustomerUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/customers", tags=["customers"])


async def _get_customer_or_404(db: AsyncSession, customer_id: uuid.UUID) -> Customer:
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )
    return customer


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new customer",
)
async def create_customer(
    body: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_customers")),
) -> Customer:
    customer = Customer(**body.model_dump())
    db.add(customer)
    await db.flush()
    await db.refresh(customer)
    return customer


@router.get(
    "",
    response_model=CustomerListResponse,
    summary="List customers with optional search",
)
async def list_customers(
    search: str | None = Query(None, description="Search by name, phone or email (case-insensitive)"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_customers")),
) -> dict:
    """Return a paginated list of customers, newest first."""
    base_filter = []

    if search:
        search_pattern = f"%{search}%"
        base_filter.append(
            or_(
                Customer.name.ilike(search_pattern),
                Customer.phone.ilike(search_pattern),
                Customer.email.ilike(search_pattern),
            )
        )

    count_result = await db.execute(select(func.count()).select_from(Customer).where(*base_filter))
    total = count_result.scalar_one()

    result = await db.execute(
        select(Customer).where(*base_filter).order_by(Customer.created_at.desc()).offset(skip).limit(limit)
    )
    items = list(result.scalars().all())

    return {"items": items, "total": total}


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Get a customer by ID",
)
async def get_customer(
    customer_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_customers")),
) -> Customer:
    return await _get_customer_or_404(db, customer_id)


@router.get(
    "/{customer_id}/bookings",
    response_model=BookingListResponse,
    summary="Stay history of a customer",
)
async def list_customer_bookings(
    customer_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_customers")),
) -> dict:
    await _get_customer_or_404(db, customer_id)
    result = await db.execute(
        select(Booking).where(Booking.customer_id == customer_id).order_by(Booking.start_date.desc())
    )
    items = list(result.scalars().all())
    return {"items": items, "total": len(items)}


@router.put(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Update a customer",
)
async def update_customer(
    customer_id: uuid.UUID,
    body: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_customers")),
) -> Customer:
    """Partially update a customer. Only explicitly set fields are changed."""
    customer = await _get_customer_or_404(db, customer_id)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in {"name", "phone"}:
            continue
        setattr(customer, field, value)

    db.add(customer)
    await db.flush()
    await db.refresh(customer)
    return customer


@router.delete(
    "/{customer_id}",
    response_model=MessageResponse,
    summary="Delete a customer",
)
async def delete_customer(
    customer_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_delete_customers")),
) -> dict:
    """Delete a customer. Their bookings stay, without a guest link."""
    customer = await _get_customer_or_404(db, customer_id)

    await db.execute(update(Booking).where(Booking.customer_id == customer.id).values(customer_id=None))
    await db.delete(customer)
    await db.flush()
    logger.info("%s deleted customer %s", current_user.username, customer.id)
    return {"message": "Customer deleted"}

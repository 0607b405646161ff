"""Bookings API router.

Every write goes through ``app.services.booking_service``, which re-runs the
pricing engine and stores the derived total and payment status. Clients never
send ``total_amount`` or ``payment_status``.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.models.booking import Booking
from app.models.user import User
from app.pricing.status import BOOKING_STATUS_PATTERN, PAYMENT_STATUS_PATTERN
from app.schemas.auth import MessageResponse
from app.schemas.booking import (
    AutoStatusResponse,
    BookingCreate,
    BookingListResponse,
    BookingQuoteRequest,
    BookingResponse,
    BookingUpdate,
    CalendarResponse,
    FinanceResponse,
    StayServiceCreate,
)
from app.services import booking_service

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])

CALENDAR_DEFAULT_DAYS = 30


# ---------------------------------------------------------------------------
# Drafts and automation
# ---------------------------------------------------------------------------


@router.post(
    "/quote",
    response_model=FinanceResponse,
    summary="Price an unsaved booking form",
)
async def quote_booking(
    body: BookingQuoteRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_bookings")),
) -> dict:
    """Run the pricing engine on a draft without saving anything.

    Apartment and dates may still be empty; the figures are then all zero.
    """
    return await booking_service.quote(db, body)


@router.get(
    "/calendar",
    response_model=CalendarResponse,
    summary="Timeline of bookings per unit",
)
async def get_calendar(
    window_start: date | None = Query(None, description="First day shown (default today)"),
    window_end: date | None = Query(None, description="Last day shown (default start + 30 days)"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_timeline")),
) -> dict:
    start = window_start or date.today()
    end = window_end or start + timedelta(days=CALENDAR_DEFAULT_DAYS)
    if end < start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="window_end must not be before window_start",
        )
    rows = await booking_service.calendar(db, start, end)
    return {"window_start": start, "window_end": end, "rows": rows}


@router.post(
    "/auto-status",
    response_model=AutoStatusResponse,
    summary="Advance booking statuses by the clock",
)
async def auto_status(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_bookings")),
) -> dict:
    """Check in arrivals whose check-in time has passed and check out departures.

    Meant to be called periodically by the front desk client.
    """
    now = datetime.now()
    transitions = await booking_service.run_auto_status(db, now)
    return {"checked_at": now, "transitions": transitions}


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new booking",
)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_bookings")),
) -> Booking:
    """Create a booking (or maintenance block) on a unit.

    Validates that:
    - The apartment and customer exist (or creates the inline customer).
    - There are no date conflicts with existing non-cancelled bookings.
    - The paid amount does not exceed the derived total.
    """
    return await booking_service.create_booking(db, body, current_user)


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List bookings",
)
async def list_bookings(
    apartment_id: uuid.UUID | None = Query(None, description="Filter by unit"),
    customer_id: uuid.UUID | None = Query(None, description="Filter by customer"),
    status_filter: str | None = Query(
        None, alias="status", pattern=BOOKING_STATUS_PATTERN, description="Filter by booking status"
    ),
    payment_status: str | None = Query(None, pattern=PAYMENT_STATUS_PATTERN, description="Filter by payment status"),
    start_from: date | None = Query(None, description="Bookings with start_date >= this date"),
    start_to: date | None = Query(None, description="Bookings with start_date <= this date"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_bookings")),
) -> dict:
    """Return a paginated list of bookings, latest arrival first."""
    filters = []
    if apartment_id is not None:
        filters.append(Booking.apartment_id == apartment_id)
    if customer_id is not None:
        filters.append(Booking.customer_id == customer_id)
    if status_filter is not None:
        filters.append(Booking.status == status_filter)
    if payment_status is not None:
        filters.append(Booking.payment_status == payment_status)
    if start_from is not None:
        filters.append(Booking.start_date >= start_from)
    if start_to is not None:
        filters.append(Booking.start_date <= start_to)

    total_result = await db.execute(select(func.count()).select_from(Booking).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Booking).where(*filters).order_by(Booking.start_date.desc()).offset(skip).limit(limit)
    )
    items = list(result.scalars().all())

    return {"items": items, "total": total}


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get booking detail",
)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_bookings")),
) -> Booking:
    return await booking_service.get_booking_or_404(db, booking_id)


@router.get(
    "/{booking_id}/finance",
    response_model=FinanceResponse,
    summary="Full folio breakdown of a saved booking",
)
async def get_booking_finance(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_bookings")),
) -> dict:
    """Recompute the folio of a saved booking without changing it."""
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return await booking_service.folio(db, booking)


@router.put(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Update a booking",
)
async def update_booking(
    booking_id: uuid.UUID,
    body: BookingUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_bookings")),
) -> Booking:
    """Partially update a booking and re-derive its finances.

    Re-runs date conflict detection when the dates or the unit change.
    """
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return await booking_service.update_booking(db, booking, body)


@router.delete(
    "/{booking_id}",
    response_model=MessageResponse,
    summary="Delete a booking",
)
async def delete_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_delete_bookings")),
) -> dict:
    """Delete a booking together with its stay services."""
    booking = await booking_service.get_booking_or_404(db, booking_id)

    await db.delete(booking)
    await db.flush()
    return {"message": "Booking deleted"}


# ---------------------------------------------------------------------------
# Folio actions
# ---------------------------------------------------------------------------


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_bookings")),
) -> Booking:
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return await booking_service.cancel_booking(db, booking)


@router.post(
    "/{booking_id}/settle",
    response_model=BookingResponse,
    summary="Collect the outstanding balance",
)
async def settle_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_bookings")),
) -> Booking:
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return await booking_service.settle_booking(db, booking)


@router.post(
    "/{booking_id}/services",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a stay service to a booking",
)
async def add_stay_service(
    booking_id: uuid.UUID,
    body: StayServiceCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_bookings")),
) -> Booking:
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return await booking_service.add_stay_service(db, booking, body)


@router.post(
    "/{booking_id}/services/{service_id}/fulfill",
    response_model=BookingResponse,
    summary="Mark a stay service as delivered",
)
async def fulfil_stay_service(
    booking_id: uuid.UUID,
    service_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_bookings")),
) -> Booking:
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return await booking_service.fulfil_stay_service(db, booking, service_id)


@router.delete(
    "/{booking_id}/services/{service_id}",
    response_model=BookingResponse,
    summary="Remove a stay service from a booking",
)
async def remove_stay_service(
    booking_id: uuid.UUID,
    service_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_bookings")),
) -> Booking:
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return await booking_service.remove_stay_service(db, booking, service_id)

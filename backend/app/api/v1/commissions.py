"""Sales commission ledger API router."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.models.booking import Booking
from app.models.user import User
from app.pricing.status import NON_REVENUE_STATUSES
from app.schemas.booking import BookingResponse
from app.schemas.commission import CommissionListResponse, CommissionUpdate
from app.services import report_service
from app.services.booking_service import get_booking_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/commissions", tags=["commissions"])


@router.get("", response_model=CommissionListResponse, summary="Commission ledger")
async def list_commissions(
    paid: bool | None = Query(None, description="Only paid (true) or unpaid (false) commissions"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_commissions")),
) -> dict:
    """Bookings carrying a commission, excluding cancelled bookings and maintenance blocks."""
    return await report_service.commission_ledger(db, paid=paid)


@router.patch("/{booking_id}", response_model=BookingResponse, summary="Mark a commission paid or unpaid")
async def update_commission(
    booking_id: uuid.UUID,
    body: CommissionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_commissions")),
) -> Booking:
    """Toggle ``commission_paid`` or correct the amount. Folio figures are unaffected."""
    booking = await get_booking_or_404(db, booking_id)
    if booking.status in NON_REVENUE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Booking {booking.display_id} is {booking.status} and carries no commission",
        )

    if body.commission_amount is not None:
        booking.commission_amount = body.commission_amount
    if body.commission_paid is not None:
        booking.commission_paid = body.commission_paid

    db.add(booking)
    await db.flush()
    await db.refresh(booking)
    logger.info(
        "%s set commission on %s to %s %s (paid=%s)",
        current_user.username,
        booking.display_id,
        booking.commission_amount,
        booking.currency,
        booking.commission_paid,
    )
    return booking

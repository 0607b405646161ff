"""Pydantic v2 schemas for dashboard and finance report endpoints."""

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from app.schemas.booking import BookingResponse


class PendingService(BaseModel):
    """A stay service ordered but not yet delivered."""

    booking_id: uuid.UUID
    service_id: uuid.UUID
    unit_number: str
    customer_name: str | None = None
    name: str
    price: Decimal
    currency: str
    is_paid: bool


class DashboardResponse(BaseModel):
    """Today's operations overview."""

    today: date
    total_units: int
    occupied_units: int
    occupancy_rate: Decimal  # percentage 0.00–100.00
    arrivals_today: int
    departures_today: int
    units_in_maintenance: int
    usd_to_egp_rate: Decimal
    recent_bookings: list[BookingResponse]
    pending_services: list[PendingService]


class UnitStats(BaseModel):
    """Per-apartment revenue and cost figures, in EGP."""

    apartment_id: uuid.UUID
    unit_number: str
    bookings: int
    nights: int
    stay_revenue_egp: Decimal
    expenses_egp: Decimal


class ChannelStats(BaseModel):
    """Revenue per booking platform, in EGP."""

    platform: str
    bookings: int
    revenue_egp: Decimal


class TreasuryEntry(BaseModel):
    """Money collected per payment method, kept in its own currency."""

    payment_method: str
    egp: Decimal
    usd: Decimal


class FinanceReportResponse(BaseModel):
    """Finance report over bookings starting (and expenses dated) in a period."""

    period_start: date
    period_end: date
    units: list[UnitStats]
    channels: list[ChannelStats]
    treasury: list[TreasuryEntry]
    revenue_egp: Decimal
    expenses_egp: Decimal
    net_egp: Decimal

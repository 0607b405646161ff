"""Pydantic v2 schemas for the sales-commission ledger."""

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class CommissionEntry(BaseModel):
    """A booking that owes a commission to its operator."""

    booking_id: uuid.UUID
    display_id: str
    unit_number: str | None = None
    customer_name: str | None = None
    receptionist_name: str | None = None
    start_date: date
    end_date: date
    currency: str
    commission_amount: Decimal
    commission_paid: bool


class CommissionTotals(BaseModel):
    """Commission sums per currency. Currencies are never mixed."""

    total_egp: Decimal
    paid_egp: Decimal
    unpaid_egp: Decimal
    total_usd: Decimal
    paid_usd: Decimal
    unpaid_usd: Decimal


class CommissionListResponse(BaseModel):
    """Commission ledger with totals."""

    items: list[CommissionEntry]
    totals: CommissionTotals


class CommissionUpdate(BaseModel):
    """Mark a commission as paid/unpaid or correct its amount."""

    commission_paid: bool | None = None
    commission_amount: Decimal | None = Field(None, ge=0)

"""Pydantic v2 request/response schemas for expense endpoints."""

import datetime
import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.pricing.currency import CURRENCY_PATTERN

CATEGORY_PATTERN = "^(maintenance|supplies|utility|other|commission)$"


class ExpenseCreate(BaseModel):
    """Schema for logging an outflow. ``apartment_id`` empty = general expense."""

    date: datetime.date = Field(default_factory=datetime.date.today)
    apartment_id: uuid.UUID | None = None
    category: str = Field("maintenance", pattern=CATEGORY_PATTERN)
    description: str = Field("", max_length=2000)
    amount: Decimal = Field(..., gt=0)
    currency: str = Field("EGP", pattern=CURRENCY_PATTERN)


class ExpenseUpdate(BaseModel):
    """Schema for partially updating an expense. All fields optional."""

    date: datetime.date | None = None
    apartment_id: uuid.UUID | None = None
    category: str | None = Field(None, pattern=CATEGORY_PATTERN)
    description: str | None = Field(None, max_length=2000)
    amount: Decimal | None = Field(None, gt=0)
    currency: str | None = Field(None, pattern=CURRENCY_PATTERN)


class ExpenseResponse(BaseModel):
    """Expense returned by the API."""

    id: uuid.UUID
    date: datetime.date
    apartment_id: uuid.UUID | None = None
    category: str
    description: str
    amount: Decimal
    currency: str
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class ExpenseListResponse(BaseModel):
    """Paginated list of expenses."""

    items: list[ExpenseResponse]
    total: int

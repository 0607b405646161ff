"""Pydantic v2 request/response schemas for apartment endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

VIEW_PATTERN = "^(Sea View|Pool View|Garden View|Street View)$"
STATUS_PATTERN = "^(active|maintenance|inactive)$"

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ApartmentCreate(BaseModel):
    """Schema for adding a unit and its rate card."""

    unit_number: str = Field(..., min_length=1, max_length=50)
    floor: int = Field(0, ge=0)
    rooms: int = Field(1, ge=1)
    view: str | None = Field(None, pattern=VIEW_PATTERN)
    daily_price: Decimal = Field(..., ge=0)
    monthly_price: Decimal = Field(Decimal("0"), ge=0)
    max_discount: Decimal = Field(Decimal("0"), ge=0)
    images: list[str] = []
    status: str = Field("active", pattern=STATUS_PATTERN)
    owner_id: uuid.UUID | None = None


class ApartmentUpdate(BaseModel):
    """Schema for partially updating a unit. All fields optional."""

    unit_number: str | None = Field(None, min_length=1, max_length=50)
    floor: int | None = Field(None, ge=0)
    rooms: int | None = Field(None, ge=1)
    view: str | None = Field(None, pattern=VIEW_PATTERN)
    daily_price: Decimal | None = Field(None, ge=0)
    monthly_price: Decimal | None = Field(None, ge=0)
    max_discount: Decimal | None = Field(None, ge=0)
    images: list[str] | None = None
    status: str | None = Field(None, pattern=STATUS_PATTERN)
    owner_id: uuid.UUID | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ApartmentResponse(BaseModel):
    """Unit information returned from the API."""

    id: uuid.UUID
    unit_number: str
    floor: int
    rooms: int
    view: str | None = None
    daily_price: Decimal
    monthly_price: Decimal
    max_discount: Decimal
    images: list[str] = []
    status: str
    owner_id: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApartmentListResponse(BaseModel):
    """Paginated list of apartments."""

    items: list[ApartmentResponse]
    total: int

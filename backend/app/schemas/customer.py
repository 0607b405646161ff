"""Pydantic v2 request/response schemas for customer endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CustomerCreate(BaseModel):
    """Schema for creating a new customer (also used inline on the booking form)."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    email: EmailStr | None = None
    nationality: str | None = Field("Egyptian", max_length=100)
    notes: str | None = None


class CustomerUpdate(BaseModel):
    """Schema for partially updating a customer. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, min_length=1, max_length=50)
    email: EmailStr | None = None
    nationality: str | None = Field(None, max_length=100)
    notes: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CustomerResponse(BaseModel):
    """Customer information returned by the API."""

    id: uuid.UUID
    name: str
    phone: str
    email: str | None = None
    nationality: str | None = None
    notes: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerListResponse(BaseModel):
    """Paginated list of customers."""

    items: list[CustomerResponse]
    total: int

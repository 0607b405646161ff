"""Pydantic v2 request/response schemas for the service catalog."""

import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CatalogServiceCreate(BaseModel):
    """Schema for adding a catalog service. Prices are EGP."""

    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0)
    is_free: bool = False


class CatalogServiceUpdate(BaseModel):
    """Schema for partially updating a catalog service."""

    name: str | None = Field(None, min_length=1, max_length=255)
    price: Decimal | None = Field(None, ge=0)
    is_free: bool | None = None


class CatalogServiceResponse(BaseModel):
    """Catalog entry returned by the API."""

    id: uuid.UUID
    name: str
    price: Decimal
    is_free: bool

    model_config = ConfigDict(from_attributes=True)


class CatalogServiceListResponse(BaseModel):
    """All catalog entries."""

    items: list[CatalogServiceResponse]
    total: int

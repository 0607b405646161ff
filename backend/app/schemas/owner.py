"""Pydantic v2 request/response schemas for owner endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

CONTRACT_PATTERN = "^(Percentage|Fixed)$"


class OwnerCreate(BaseModel):
    """Schema for registering a unit owner and their contract."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    email: str | None = Field(None, max_length=255)
    bank_account: str | None = Field(None, max_length=255)
    contract_type: str = Field("Percentage", pattern=CONTRACT_PATTERN)
    contract_value: Decimal = Field(Decimal("20"), ge=0)

    @model_validator(mode="after")
    def check_percentage(self) -> "OwnerCreate":
        """A percentage contract can't exceed 100%."""
        if self.contract_type == "Percentage" and self.contract_value > 100:
            raise ValueError("contract_value must be between 0 and 100 for Percentage contracts")
        return self


class OwnerUpdate(BaseModel):
    """Schema for partially updating an owner. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    email: str | None = Field(None, max_length=255)
    bank_account: str | None = Field(None, max_length=255)
    contract_type: str | None = Field(None, pattern=CONTRACT_PATTERN)
    contract_value: Decimal | None = Field(None, ge=0)


class OwnerResponse(BaseModel):
    """Owner details returned by the API."""

    id: uuid.UUID
    name: str
    phone: str | None = None
    email: str | None = None
    bank_account: str | None = None
    contract_type: str
    contract_value: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OwnerDetailResponse(OwnerResponse):
    """Owner with the unit numbers they own."""

    unit_numbers: list[str] = []


class OwnerListResponse(BaseModel):
    """List of owners."""

    items: list[OwnerResponse]
    total: int

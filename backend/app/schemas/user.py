"""Pydantic v2 request/response schemas for staff management endpoints."""

from pydantic import BaseModel, Field

from app.schemas.auth import UserResponse

ROLE_PATTERN = "^(admin|reception)$"


class UserCreate(BaseModel):
    """Schema for adding a staff account. Unknown permission keys are ignored."""

    name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.\-]+$")
    password: str = Field(..., min_length=6, max_length=72)
    role: str = Field("reception", pattern=ROLE_PATTERN)
    permissions: dict[str, bool] | None = None


class UserUpdate(BaseModel):
    """Schema for partially updating a staff account. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    username: str | None = Field(None, min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.\-]+$")
    password: str | None = Field(None, min_length=6, max_length=72)
    role: str | None = Field(None, pattern=ROLE_PATTERN)
    permissions: dict[str, bool] | None = None
    is_active: bool | None = None


class UserListResponse(BaseModel):
    """List of staff accounts."""

    items: list[UserResponse]
    total: int

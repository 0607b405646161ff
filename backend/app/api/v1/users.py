"""Staff accounts API router (admin screen)."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.auth.passwords import hash_password
from app.auth.permissions import resolve_permissions
from app.models.user import User
from app.schemas.auth import MessageResponse, UserResponse
from app.schemas.user import UserCreate, UserListResponse, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["users"])


async def _get_user_or_404(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def _ensure_username_free(db: AsyncSession, username: str, exclude_id: uuid.UUID | None = None) -> None:
    query = select(User.id).where(User.username == username)
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    if await db.scalar(query) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")


@router.get("", response_model=UserListResponse, summary="List staff accounts")
async def list_users(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_staff")),
) -> dict:
    result = await db.execute(select(User).order_by(User.created_at))
    items = list(result.scalars().all())
    return {"items": items, "total": len(items)}


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a staff account",
)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_staff")),
) -> User:
    """Create a staff account; permissions start from the role defaults."""
    await _ensure_username_free(db, body.username)

    user = User(
        username=body.username,
        hashed_password=hash_password(body.password),
        name=body.name,
        role=body.role,
        permissions=resolve_permissions(body.role, body.permissions),
        is_active=True,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    logger.info("%s created %s account %s", current_user.username, user.role, user.username)
    return user


@router.get("/{user_id}", response_model=UserResponse, summary="Get a staff account")
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_staff")),
) -> User:
    return await _get_user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserResponse, summary="Update a staff account")
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_staff")),
) -> User:
    """Partially update a staff account.

    Changing the role re-derives the permission map from the new role's
    defaults; explicit ``permissions`` are applied on top.
    """
    user = await _get_user_or_404(db, user_id)
    update_data = body.model_dump(exclude_unset=True)

    if update_data.get("username") and update_data["username"] != user.username:
        await _ensure_username_free(db, update_data["username"], exclude_id=user.id)
        user.username = update_data["username"]
    if update_data.get("name"):
        user.name = update_data["name"]
    if update_data.get("password"):
        user.hashed_password = hash_password(update_data["password"])
    if update_data.get("is_active") is not None:
        if user.id == current_user.id and not update_data["is_active"]:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate yourself")
        user.is_active = update_data["is_active"]

    role = update_data.get("role") or user.role
    if "role" in update_data or "permissions" in update_data:
        overrides = update_data.get("permissions")
        if overrides is None and role == user.role:
            overrides = user.permissions
        user.role = role
        user.permissions = resolve_permissions(role, overrides)

    db.add(user)
    await db.flush()
    await db.refresh(user)
    logger.info("%s updated account %s", current_user.username, user.username)
    return user


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete a staff account")
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_staff")),
) -> dict:
    user = await _get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete yourself")

    await db.delete(user)
    await db.flush()
    logger.info("%s deleted account %s", current_user.username, user.username)
    return {"message": "User deleted"}

"""Expenses (maintenance and operating costs) API router."""

import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.models.apartment import Apartment
from app.models.expense import Expense
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.expense import (
    ExpenseCreate,
    ExpenseListResponse,
    ExpenseResponse,
    ExpenseUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/expenses", tags=["expenses"])


async def _get_expense_or_404(db: AsyncSession, expense_id: uuid.UUID) -> Expense:
    expense = await db.get(Expense, expense_id)
    if expense is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense


async def _check_apartment(db: AsyncSession, apartment_id: uuid.UUID | None) -> None:
    if apartment_id is not None and await db.get(Apartment, apartment_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Apartment not found")


@router.post(
    "",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log an expense",
)
async def create_expense(
    body: ExpenseCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("can_manage_maintenance")),
) -> Expense:
    await _check_apartment(db, body.apartment_id)
    expense = Expense(**body.model_dump())
    db.add(expense)
    await db.flush()
    await db.refresh(expense)
    logger.info(
        "%s logged %s expense of %s %s",
        current_user.username,
        expense.category,
        expense.amount,
        expense.currency,
    )
    return expense


@router.get("", response_model=ExpenseListResponse, summary="List expenses")
async def list_expenses(
    apartment_id: uuid.UUID | None = Query(None, description="Filter by unit"),
    category: str | None = Query(None, description="Filter by category"),
    date_from: date | None = Query(None, description="Expenses dated on or after"),
    date_to: date | None = Query(None, description="Expenses dated on or before"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(50, ge=1, le=500, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_maintenance")),
) -> dict:
    filters = []
    if apartment_id is not None:
        filters.append(Expense.apartment_id == apartment_id)
    if category is not None:
        filters.append(Expense.category == category)
    if date_from is not None:
        filters.append(Expense.date >= date_from)
    if date_to is not None:
        filters.append(Expense.date <= date_to)

    total = (await db.execute(select(func.count()).select_from(Expense).where(*filters))).scalar_one()
    result = await db.execute(
        select(Expense).where(*filters).order_by(Expense.date.desc()).offset(skip).limit(limit)
    )
    return {"items": list(result.scalars().all()), "total": total}


@router.put("/{expense_id}", response_model=ExpenseResponse, summary="Update an expense")
async def update_expense(
    expense_id: uuid.UUID,
    body: ExpenseUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_maintenance")),
) -> Expense:
    expense = await _get_expense_or_404(db, expense_id)
    update_data = body.model_dump(exclude_unset=True)

    if "apartment_id" in update_data:
        await _check_apartment(db, update_data["apartment_id"])

    for field, value in update_data.items():
        if value is None and field != "apartment_id":
            continue
        setattr(expense, field, value)

    db.add(expense)
    await db.flush()
    await db.refresh(expense)
    return expense


@router.delete("/{expense_id}", response_model=MessageResponse, summary="Delete an expense")
async def delete_expense(
    expense_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_manage_maintenance")),
) -> MessageResponse:
    expense = await _get_expense_or_404(db, expense_id)
    await db.delete(expense)
    await db.flush()
    return MessageResponse(message="Expense deleted")

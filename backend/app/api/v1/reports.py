"""Reports API router: dashboard overview and finance report."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.models.user import User
from app.schemas.report import DashboardResponse, FinanceReportResponse
from app.services import report_service

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Today's operations overview",
)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_dashboard")),
) -> dict:
    return await report_service.dashboard(db)


@router.get(
    "/finance",
    response_model=FinanceReportResponse,
    summary="Finance report for a period",
)
async def get_finance_report(
    period_start: date | None = Query(None, description="Start of period (default first day of this month)"),
    period_end: date | None = Query(None, description="End of period, inclusive (default today)"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_permission("can_view_reports")),
) -> dict:
    """Unit profits, channel revenue, treasury and expenses over a period.

    Defaults to the current month up to today.
    """
    today = date.today()
    start = period_start or today.replace(day=1)
    end = period_end or today

    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="period_start must be before or equal to period_end",
        )

    return await report_service.finance_report(db, start, end)

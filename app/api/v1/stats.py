"""Admin statistics endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_stats_service
from app.core.security import require_permission
from app.schemas.stats import KeyStatistics, RevenueReport
from app.services.stats_service import StatsService

# All stats endpoints require admin access
router = APIRouter(dependencies=[Depends(require_permission("admin:access"))])


@router.get("/revenue", response_model=RevenueReport)
async def revenue_report(
    startDate: Optional[str] = Query(None, description="ISO date, defaults to the first of this month"),
    endDate: Optional[str] = Query(None, description="ISO date (inclusive), defaults to today"),
    stats_service: StatsService = Depends(get_stats_service),
):
    """Revenue per technician. Final cost counts when set, else the estimate."""
    return await stats_service.revenue(startDate, endDate)


@router.get("/summary", response_model=KeyStatistics)
async def summary(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    stats_service: StatsService = Depends(get_stats_service),
):
    """Device count, most processed brand and most common issue."""
    return await stats_service.summary(startDate, endDate)

"""Revenue and summary reporting for the admin dashboard."""

import logging
from datetime import datetime, time, timezone
from typing import Any, Dict, Optional, Tuple

from app.core.errors import AppError
from app.services.item_storage import MongoItemStorage
from app.utils.helpers import utcnow

logger = logging.getLogger(__name__)


def _parse_date(value: str, name: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise AppError(f"Invalid {name}: expected an ISO date such as 2024-01-31")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_date_range(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Reporting window for the stats endpoints.

    Defaults to the first day of the current month through today. The end
    date is always inclusive up to 23:59:59.999 of that day.
    """
    now = now or utcnow()

    if start_date:
        start = _parse_date(start_date, "startDate")
    else:
        start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)

    end_day = _parse_date(end_date, "endDate") if end_date else now
    end = datetime.combine(end_day.date(), time(23, 59, 59, 999000), tzinfo=end_day.tzinfo)

    if start > end:
        raise AppError("startDate must not be after endDate")
    return start, end


class StatsService:
    def __init__(self, storage: MongoItemStorage):
        self.storage = storage

    async def revenue(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Dict[str, Any]:
        start, end = resolve_date_range(start_date, end_date)
        report = await self.storage.revenue_report(start, end)
        logger.debug(f"Revenue report {start.date()}..{end.date()}: {report['total']}")
        return report

    async def summary(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Dict[str, Any]:
        start, end = resolve_date_range(start_date, end_date)
        return await self.storage.key_statistics(start, end)

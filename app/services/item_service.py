"""
Item service
Query building, pagination, cached stats and lifecycle operations for repair jobs.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from fastapi import status
from fastapi.concurrency import run_in_threadpool
from pymongo.errors import DuplicateKeyError

from app.config import settings
from app.core.cache import CacheManager
from app.core.errors import AppError
from app.core.security import SessionPrincipal
from app.models.item import new_item_document, status_history_entry
from app.schemas.item import ItemCreate, ItemUpdate
from app.services.item_storage import MongoItemStorage
from app.utils.constants import (
    DEFAULT_SORT_FIELD,
    SORTABLE_FIELDS,
    STATS_CACHE_KEY,
    STATUS_GROUP_ALIASES,
    STATUS_GROUPS,
)
from app.utils.helpers import escape_regex, paginate, total_pages, utcnow

logger = logging.getLogger(__name__)

_ADMIN_SUFFIX = re.compile(r"\s*\(admin\)\s*$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Query building
# ---------------------------------------------------------------------------

def normalize_status_group(group: Optional[str]) -> Optional[str]:
    """Canonical group name, or None for blank or unknown groups."""
    if not group:
        return None
    group = STATUS_GROUP_ALIASES.get(group, group)
    return group if group in STATUS_GROUPS else None


def technician_name_pattern(technician_name: str) -> str:
    """
    Regex matching a technician with or without the " (Admin)" display suffix.

    Display names of admins carry the suffix, and items created before a role
    change keep whichever form was current, so both must match.
    """
    base = _ADMIN_SUFFIX.sub("", technician_name.strip())
    return rf"^{escape_regex(base)}(\s*\(admin\))?$"


def build_item_query(
    search: Optional[str] = None,
    status_group: Optional[str] = None,
    technician_name: Optional[str] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {"isDeleted": False}

    if search and search.strip():
        query["$text"] = {"$search": search.strip()}

    group = normalize_status_group(status_group)
    if group:
        query["status"] = {"$in": list(STATUS_GROUPS[group])}

    if technician_name and technician_name.strip():
        query["technicianName"] = {
            "$regex": technician_name_pattern(technician_name),
            "$options": "i",
        }

    return query


def build_sort(sort_by: Optional[str] = None, sort_order: Optional[str] = None) -> List[Tuple[str, int]]:
    """Allow-listed sort with createdAt (newest first) as tie-breaker."""
    field = sort_by if sort_by in SORTABLE_FIELDS else DEFAULT_SORT_FIELD
    direction = 1 if (sort_order or "").lower() == "asc" else -1

    sort = [(field, direction)]
    if field != DEFAULT_SORT_FIELD:
        sort.append((DEFAULT_SORT_FIELD, -1))
    return sort


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ItemService:
    """Repair job operations on top of item storage and the stats cache."""

    def __init__(self, storage: MongoItemStorage, cache: Optional[CacheManager] = None):
        self.storage = storage
        self.cache = cache

    async def get_stats(self) -> Dict[str, int]:
        """Status-group counts, served from cache when fresh."""
        if self.cache is not None:
            cached = await run_in_threadpool(self.cache.get, STATS_CACHE_KEY)
            if cached is not None:
                return cached

        stats = await self.storage.status_group_counts()
        if self.cache is not None:
            await run_in_threadpool(self.cache.set, STATS_CACHE_KEY, stats, ttl=settings.CACHE_STATS_TTL)
        return stats

    async def invalidate_stats(self) -> None:
        if self.cache is not None:
            await run_in_threadpool(self.cache.delete, STATS_CACHE_KEY)

    async def list_items(
        self,
        principal: SessionPrincipal,
        page: int = 1,
        limit: int = settings.DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
        status_group: Optional[str] = None,
        technician_name: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        include_metadata: bool = False,
    ) -> Dict[str, Any]:
        query = build_item_query(search, status_group, technician_name)
        sort = build_sort(sort_by, sort_order)
        window = paginate(page, limit)
        show_metadata = principal.is_admin and include_metadata

        items = await self.storage.find_page(
            query,
            sort,
            skip=window["skip"],
            limit=window["limit"],
            include_metadata=show_metadata,
        )
        total_items = await self.storage.count(query)
        stats = await self.get_stats()

        return {
            "items": items,
            "currentPage": window["page"],
            "totalPages": total_pages(total_items, limit),
            "totalItems": total_items,
            "stats": stats,
        }

    async def create_item(
        self,
        data: ItemCreate,
        principal: SessionPrincipal,
        metadata: Dict[str, Any],
    ) -> Dict[str, Any]:
        if await self.storage.get_by_job_number(data.jobNumber):
            raise AppError("Job number already exists")

        document = new_item_document(
            job_number=data.jobNumber,
            customer_name=data.customerName,
            brand=data.brand,
            phone_number=data.phoneNumber,
            technician_name=principal.display_name,
            metadata=metadata,
            now=utcnow(),
            issue=data.issue,
            cost=data.cost,
            due_date=data.dueDate,
        )

        try:
            item = await self.storage.insert(document)
        except DuplicateKeyError:
            # Lost a race with a concurrent create of the same job number
            raise AppError("Job number already exists")

        await self.invalidate_stats()
        logger.info(f"Item {item['jobNumber']} created by {principal.username}")
        item.pop("metadata", None)
        return item

    async def update_item(self, item_id: str, data: ItemUpdate) -> Dict[str, Any]:
        current = await self.storage.get_by_id(item_id)
        if current is None:
            raise AppError("Item not found", status.HTTP_404_NOT_FOUND)

        fields = data.model_dump(exclude_unset=True)
        changes: Dict[str, Any] = {}

        for key in ("customerName", "issue"):
            if fields.get(key) is not None:
                changes[key] = fields[key].strip().upper()
        for key in ("brand", "phoneNumber", "technicianName"):
            if fields.get(key) is not None:
                changes[key] = fields[key]
        if "repairNotes" in fields:
            changes["repairNotes"] = (fields["repairNotes"] or "").strip()
        for key in ("cost", "finalCost"):
            if fields.get(key) is not None:
                changes[key] = fields[key]
        if "dueDate" in fields:
            changes["dueDate"] = fields["dueDate"]

        now = utcnow()
        history_entry = None
        new_status = fields.get("status")
        if new_status and new_status != current.get("status"):
            changes["status"] = new_status
            history_entry = status_history_entry(new_status, fields.get("repairNotes"), now)

        changes["updatedAt"] = now
        item = await self.storage.update(item_id, changes, history_entry)
        if item is None:
            raise AppError("Item not found", status.HTTP_404_NOT_FOUND)

        if history_entry is not None:
            await self.invalidate_stats()
        return item

    async def delete_item(self, item_id: str, principal: SessionPrincipal) -> None:
        if not await self.storage.soft_delete(item_id, utcnow()):
            raise AppError("Item not found", status.HTTP_404_NOT_FOUND)
        await self.invalidate_stats()
        logger.info(f"Item {item_id} soft-deleted by {principal.username}")

    async def bulk_update_status(self, item_ids: List[str], new_status: str) -> Dict[str, int]:
        now = utcnow()
        entry = status_history_entry(new_status, "Bulk status update", now)
        modified = await self.storage.set_status_many(item_ids, new_status, entry, now)
        await self.invalidate_stats()
        logger.info(f"Bulk status update to '{new_status}': {modified} of {len(item_ids)} items modified")
        return {"modifiedCount": modified}

    async def backup(self) -> List[Dict[str, Any]]:
        items = await self.storage.dump_all()
        for item in items:
            item["_id"] = str(item["_id"])
        return items

    async def track(self, job_number: Optional[str], phone_number: Optional[str]) -> Dict[str, Any]:
        job_number = (job_number or "").strip()
        phone_number = (phone_number or "").strip()
        if not job_number or not phone_number:
            raise AppError("Job number and phone number are required")

        item = await self.storage.find_for_tracking(job_number, phone_number)
        if item is None:
            raise AppError("No repair job found with those details", status.HTTP_404_NOT_FOUND)
        return item

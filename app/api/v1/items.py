"""Repair job endpoints."""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from app.api.deps import get_item_service
from app.config import settings
from app.core.security import SessionPrincipal, require_csrf, require_permission
from app.schemas.item import (
    BulkStatusResponse,
    BulkStatusUpdate,
    ItemCreate,
    ItemListResponse,
    ItemResponse,
    ItemUpdate,
    TrackingResponse,
)
from app.services.item_service import ItemService
from app.utils.helpers import request_metadata, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ItemListResponse, response_model_exclude_none=True)
async def list_items(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"),
    search: Optional[str] = Query(None, description="Text search over customer, brand, job number and phone"),
    statusGroup: Optional[str] = Query(None, description="in-progress, ready or returned"),
    technicianName: Optional[str] = Query(None, description="Technician display name"),
    sortBy: Optional[str] = Query(None, description="createdAt, customerName, cost or status"),
    sortOrder: Optional[str] = Query("desc", description="asc or desc"),
    includeMetadata: bool = Query(False, description="Include audit metadata (admin only)"),
    principal: SessionPrincipal = Depends(require_permission("items:read")),
    item_service: ItemService = Depends(get_item_service),
):
    """
    Paginated, filtered item list plus dashboard stats.

    **Filters:**
    - `search`: whole-word text search (not substring)
    - `statusGroup`: status group; unknown groups are ignored
    - `technicianName`: matches with or without the " (Admin)" suffix
    """
    return await item_service.list_items(
        principal,
        page=page,
        limit=limit,
        search=search,
        status_group=statusGroup,
        technician_name=technicianName,
        sort_by=sortBy,
        sort_order=sortOrder,
        include_metadata=includeMetadata,
    )


@router.post(
    "",
    response_model=ItemResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_item(
    request: Request,
    body: ItemCreate,
    _csrf: SessionPrincipal = Depends(require_csrf),
    principal: SessionPrincipal = Depends(require_permission("items:create")),
    item_service: ItemService = Depends(get_item_service),
):
    """Create a repair job in status "Received"."""
    metadata = request_metadata(request, principal.role, utcnow())
    return await item_service.create_item(body, principal, metadata)


@router.get("/backup")
async def backup_items(
    principal: SessionPrincipal = Depends(require_permission("items:backup")),
    item_service: ItemService = Depends(get_item_service),
):
    """Download every item, including soft-deleted ones, as a JSON attachment."""
    items = await item_service.backup()
    timestamp = utcnow().strftime("%Y-%m-%dT%H-%M-%S")
    logger.info(f"Backup of {len(items)} items downloaded by {principal.username}")

    return Response(
        content=json.dumps(items, default=str, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="backup-{timestamp}.json"'},
    )


@router.get("/track", response_model=TrackingResponse)
async def track_item(
    jobNumber: Optional[str] = Query(None),
    phoneNumber: Optional[str] = Query(None),
    item_service: ItemService = Depends(get_item_service),
):
    """Public job lookup for customers; needs both job number and phone number."""
    return await item_service.track(jobNumber, phoneNumber)


@router.patch("/bulk-status", response_model=BulkStatusResponse)
async def bulk_update_status(
    body: BulkStatusUpdate,
    _csrf: SessionPrincipal = Depends(require_csrf),
    principal: SessionPrincipal = Depends(require_permission("items:update")),
    item_service: ItemService = Depends(get_item_service),
):
    """Set one status on many items. Unknown or deleted ids are skipped."""
    return await item_service.bulk_update_status(body.ids, body.status)


@router.put("/{item_id}", response_model=ItemResponse, response_model_exclude_none=True)
async def update_item(
    item_id: str,
    body: ItemUpdate,
    _csrf: SessionPrincipal = Depends(require_csrf),
    principal: SessionPrincipal = Depends(require_permission("items:update")),
    item_service: ItemService = Depends(get_item_service),
):
    """Partial update. A status change appends to the status history."""
    return await item_service.update_item(item_id, body)


@router.delete("/{item_id}")
async def delete_item(
    item_id: str,
    _csrf: SessionPrincipal = Depends(require_csrf),
    principal: SessionPrincipal = Depends(require_permission("items:delete")),
    item_service: ItemService = Depends(get_item_service),
):
    """Soft delete. The item stays in backups."""
    await item_service.delete_item(item_id, principal)
    return {"success": True, "message": "Item deleted"}

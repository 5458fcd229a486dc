"""Repair job ("item") document shape and indexes."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, TEXT, IndexModel

from app.utils.constants import DEFAULT_ITEM_STATUS

ITEM_INDEXES: List[IndexModel] = [
    IndexModel([("jobNumber", ASCENDING)], unique=True, name="jobNumber_unique"),
    IndexModel([("phoneNumber", ASCENDING)]),
    IndexModel([("status", ASCENDING)]),
    IndexModel([("isDeleted", ASCENDING)]),
    IndexModel(
        [
            ("customerName", TEXT),
            ("brand", TEXT),
            ("jobNumber", TEXT),
            ("phoneNumber", TEXT),
        ],
        name="item_text_search",
    ),
    IndexModel([("isDeleted", ASCENDING), ("createdAt", DESCENDING)]),
    IndexModel([("isDeleted", ASCENDING), ("status", ASCENDING)]),
    IndexModel([("isDeleted", ASCENDING), ("status", ASCENDING), ("createdAt", DESCENDING)]),
    IndexModel([("isDeleted", ASCENDING), ("cost", ASCENDING), ("createdAt", DESCENDING)]),
]

# Fields a customer may see through the public tracking lookup
PUBLIC_TRACKING_FIELDS = [
    "jobNumber",
    "customerName",
    "brand",
    "issue",
    "status",
    "cost",
    "finalCost",
    "dueDate",
    "statusHistory",
    "createdAt",
    "updatedAt",
]


def new_item_document(
    job_number: str,
    customer_name: str,
    brand: str,
    phone_number: str,
    technician_name: str,
    metadata: Dict[str, Any],
    now: datetime,
    issue: Optional[str] = None,
    cost: Optional[float] = None,
    due_date: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build a fresh item document. Customer name and issue are stored upper-cased."""
    return {
        "jobNumber": job_number.strip(),
        "customerName": customer_name.strip().upper(),
        "brand": brand.strip(),
        "phoneNumber": phone_number.strip(),
        "status": DEFAULT_ITEM_STATUS,
        "issue": (issue or "").strip().upper(),
        "repairNotes": "",
        "cost": cost or 0,
        "finalCost": 0,
        "dueDate": due_date,
        "technicianName": technician_name or "Unknown",
        "statusHistory": [],
        "isDeleted": False,
        "metadata": metadata,
        "createdAt": now,
        "updatedAt": now,
    }


def status_history_entry(status: str, note: Optional[str], changed_at: datetime) -> Dict[str, Any]:
    return {
        "status": status,
        "note": (note or "").strip(),
        "changedAt": changed_at,
    }

"""MongoDB document shapes."""

from app.models.item import ITEM_INDEXES, PUBLIC_TRACKING_FIELDS, new_item_document, status_history_entry
from app.models.user import USER_INDEXES, new_user_document, seed_technicians

__all__ = [
    "ITEM_INDEXES",
    "PUBLIC_TRACKING_FIELDS",
    "USER_INDEXES",
    "new_item_document",
    "new_user_document",
    "seed_technicians",
    "status_history_entry",
]

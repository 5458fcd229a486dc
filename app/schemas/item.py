"""Repair job (item) schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.utils.constants import ITEM_STATUSES
from app.utils.validators import strip_to_none, validate_phone


def _parse_due_date(value: Any) -> Any:
    # Date pickers send a bare YYYY-MM-DD
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if len(value) == 10:
            return f"{value}T00:00:00+00:00"
    return value


def _check_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not validate_phone(value):
        raise ValueError("Phone number must be exactly 10 digits")
    return value


def _check_status(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if value not in ITEM_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(ITEM_STATUSES)}")
    return value


class ItemCreate(BaseModel):
    """Create request. Unknown fields are ignored."""

    jobNumber: str
    customerName: str
    brand: str
    phoneNumber: str
    issue: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)
    dueDate: Optional[datetime] = None

    @field_validator("jobNumber", "customerName", "brand")
    @classmethod
    def required_text(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} is required")
        return v

    @field_validator("phoneNumber")
    @classmethod
    def phone_number(cls, v: str) -> str:
        return _check_phone(v)

    @field_validator("dueDate", mode="before")
    @classmethod
    def due_date(cls, v: Any) -> Any:
        return _parse_due_date(v)


class ItemUpdate(BaseModel):
    """Partial update; only fields that are sent are applied."""

    customerName: Optional[str] = None
    brand: Optional[str] = None
    phoneNumber: Optional[str] = None
    issue: Optional[str] = None
    repairNotes: Optional[str] = None
    status: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)
    finalCost: Optional[float] = Field(None, ge=0)
    dueDate: Optional[datetime] = None
    technicianName: Optional[str] = None

    @field_validator("customerName", "brand", "technicianName")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return strip_to_none(v)

    @field_validator("phoneNumber")
    @classmethod
    def phone_number(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v)

    @field_validator("status")
    @classmethod
    def status_value(cls, v: Optional[str]) -> Optional[str]:
        return _check_status(v)

    @field_validator("dueDate", mode="before")
    @classmethod
    def due_date(cls, v: Any) -> Any:
        return _parse_due_date(v)


class BulkStatusUpdate(BaseModel):
    ids: List[str]
    status: str

    @field_validator("ids")
    @classmethod
    def non_empty(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("ids must be a non-empty list")
        return v

    @field_validator("status")
    @classmethod
    def status_value(cls, v: str) -> str:
        return _check_status(v)


class StatusHistoryEntry(BaseModel):
    status: str
    note: str = ""
    changedAt: datetime


class ItemResponse(BaseModel):
    """An item as returned to technicians."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    jobNumber: str
    customerName: str
    brand: str
    phoneNumber: str
    status: str
    issue: Optional[str] = None
    repairNotes: Optional[str] = None
    cost: float = 0
    finalCost: float = 0
    dueDate: Optional[datetime] = None
    technicianName: Optional[str] = None
    statusHistory: List[StatusHistoryEntry] = Field(default_factory=list)
    isDeleted: bool = False
    metadata: Optional[Dict[str, Any]] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def convert_object_id(cls, data: Any) -> Any:
        """Mongo documents carry an ObjectId under _id."""
        if isinstance(data, dict) and isinstance(data.get("_id"), ObjectId):
            data = {**data, "_id": str(data["_id"])}
        return data


class ItemStats(BaseModel):
    total: int = 0
    inProgress: int = 0
    ready: int = 0
    returned: int = 0


class ItemListResponse(BaseModel):
    items: List[ItemResponse]
    currentPage: int
    totalPages: int
    totalItems: int
    stats: ItemStats


class BulkStatusResponse(BaseModel):
    modifiedCount: int


class TrackingResponse(BaseModel):
    """Customer-safe view of a job."""

    jobNumber: str
    customerName: str
    brand: str
    issue: Optional[str] = None
    status: str
    cost: float = 0
    finalCost: float = 0
    dueDate: Optional[datetime] = None
    statusHistory: List[StatusHistoryEntry] = Field(default_factory=list)
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

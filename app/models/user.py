"""Technician (user) document shape, indexes and seed data."""

from datetime import datetime
from typing import Any, Dict, List

from pymongo import ASCENDING, IndexModel

from app.config import Settings
from app.core.security import Role

USER_INDEXES: List[IndexModel] = [
    IndexModel([("username", ASCENDING)], unique=True, name="username_unique"),
]


def new_user_document(
    username: str,
    password_hash: str,
    display_name: str,
    role: str,
    now: datetime,
) -> Dict[str, Any]:
    return {
        "username": username,
        "password": password_hash,
        "displayName": display_name,
        "role": role,
        "createdAt": now,
        "updatedAt": now,
    }


def seed_technicians(settings: Settings) -> List[Dict[str, str]]:
    """Technicians created on first start when the users collection is empty."""
    return [
        {
            "username": "Shyam",
            "role": Role.ADMIN.value,
            "password": settings.TECH_PASSWORD_SHYAM,
            "displayName": "Shyam (Admin)",
        },
        {
            "username": "Rakesh",
            "role": Role.USER.value,
            "password": settings.TECH_PASSWORD_RAKESH,
            "displayName": "Rakesh",
        },
        {
            "username": "Akhil",
            "role": Role.USER.value,
            "password": settings.TECH_PASSWORD_AKHIL,
            "displayName": "Akhil",
        },
        {
            "username": "Nabeel",
            "role": Role.USER.value,
            "password": settings.TECH_PASSWORD_NABEEL,
            "displayName": "Nabeel",
        },
    ]

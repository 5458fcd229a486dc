"""
API Dependencies
Service providers for endpoints; tests swap these via app.dependency_overrides.
"""

from typing import Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.config import settings
from app.core.cache import CacheManager, get_cache_manager
from app.core.rate_limit import LoginRateLimiter
from app.db.mongodb import get_database
from app.services.auth_service import AuthService
from app.services.item_service import ItemService
from app.services.item_storage import MongoItemStorage
from app.services.stats_service import StatsService
from app.services.user_storage import MongoUserStorage
from app.services.vision import VisionProvider, get_vision_provider as _vision_provider


def get_item_storage(db: AsyncIOMotorDatabase = Depends(get_database)) -> MongoItemStorage:
    return MongoItemStorage(db)


def get_user_storage(db: AsyncIOMotorDatabase = Depends(get_database)) -> MongoUserStorage:
    return MongoUserStorage(db)


def get_cache() -> Optional[CacheManager]:
    return get_cache_manager()


def get_item_service(
    storage: MongoItemStorage = Depends(get_item_storage),
    cache: Optional[CacheManager] = Depends(get_cache),
) -> ItemService:
    return ItemService(storage, cache)


def get_auth_service(storage: MongoUserStorage = Depends(get_user_storage)) -> AuthService:
    return AuthService(storage)


def get_stats_service(storage: MongoItemStorage = Depends(get_item_storage)) -> StatsService:
    return StatsService(storage)


def get_vision_provider() -> VisionProvider:
    return _vision_provider()


def get_login_rate_limiter(cache: Optional[CacheManager] = Depends(get_cache)) -> LoginRateLimiter:
    return LoginRateLimiter(
        cache,
        max_attempts=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
        window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    )

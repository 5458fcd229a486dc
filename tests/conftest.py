"""Shared fixtures: the FastAPI app wired to in-memory fakes."""

import asyncio
import os

# Must be set before app.config is imported
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("AUTH_TOKEN_SECRET", "test-secret-key")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("SENTRY_DSN", "")

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_cache, get_item_storage, get_user_storage, get_vision_provider
from app.config import settings
from app.core.cache import CacheManager
from app.main import app
from app.services.auth_service import AuthService
from tests.fakes import FakeItemStorage, FakeRedis, FakeUserStorage, FakeVisionProvider


@pytest.fixture
def item_storage():
    return FakeItemStorage()


@pytest.fixture
def user_storage():
    storage = FakeUserStorage()
    asyncio.run(AuthService(storage).seed_users(settings))
    return storage


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return CacheManager(settings, client=fake_redis)


@pytest.fixture
def vision():
    return FakeVisionProvider(
        result={
            "jobNumber": "JS-204",
            "customerName": "Meera Nair",
            "customerMobileNo": "9876501234",
            "customerEmail": None,
            "item": "Laptop",
            "make": "Dell",
            "model": "Latitude 5490",
            "serialNumber": "SN123",
            "date": "2024-03-02",
            "accessories": {"powerAdapter": True, "powerCord": False, "carryCase": True, "battery": False, "others": None},
            "remarks": "No display",
            "handwrittenNotes": "check hinge",
        }
    )


@pytest.fixture
def make_client(item_storage, user_storage, cache, vision):
    """Factory for clients with independent cookie jars over shared fakes."""
    app.dependency_overrides[get_item_storage] = lambda: item_storage
    app.dependency_overrides[get_user_storage] = lambda: user_storage
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_vision_provider] = lambda: vision

    # Not entered as a context manager: the lifespan would connect to MongoDB
    yield lambda: TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


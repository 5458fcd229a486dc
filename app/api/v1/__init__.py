"""API routes."""

from fastapi import APIRouter

from app.api.v1 import auth, items, stats, vision

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(items.router, prefix="/items", tags=["Items"])
api_router.include_router(stats.router, prefix="/stats", tags=["Statistics"])
api_router.include_router(vision.router, prefix="/vision", tags=["Vision"])

"""
API router aggregation.

WHAT: Combine all endpoint routers
WHY: Single place to register all API routes
HOW: Include routers from endpoints with prefixes
"""

from fastapi import APIRouter

from .endpoints import status, psychic

# Create main router
api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    status.router,
    tags=["status"]
)

api_router.include_router(
    psychic.router,
    prefix="/api",
    tags=["psychic"]
)

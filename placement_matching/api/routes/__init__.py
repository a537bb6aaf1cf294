"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from placement_matching.api.routes.match_routes import router as match_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(match_router)

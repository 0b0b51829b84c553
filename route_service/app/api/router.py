"""
API Router.

Aggregates all API endpoints.
"""

from fastapi import APIRouter
from route_service.app.api.endpoints import routes

router = APIRouter()

router.include_router(routes.router)

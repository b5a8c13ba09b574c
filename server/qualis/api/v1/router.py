from __future__ import annotations
"""server/qualis/api/v1/router.py
~~~~~~~~~~~~~~~~~~~~~~~~
API v1 router.
"""
from fastapi import APIRouter
from qualis.api.v1.endpoints import health, notifications, workflows


api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(workflows.router, tags=["workflows"])
api_router.include_router(notifications.router, tags=["notifications"])

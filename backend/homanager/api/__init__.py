"""API router package."""

from fastapi import APIRouter

from homanager.api.v1 import calendar, health, houses, notifications

router = APIRouter()

router.include_router(health.router, tags=["Health"])
router.include_router(calendar.router, prefix="/calendar", tags=["Calendar"])
router.include_router(houses.router, prefix="/houses", tags=["Houses"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

"""Aggregate API routers."""

from fastapi import APIRouter

from .accounts import router as accounts_router
from .admin import router as admin_router
from .segments import router as segments_router
from .strava import router as strava_router
from .system import router as system_router

ALL_ROUTERS: tuple[APIRouter, ...] = (
    system_router,
    strava_router,
    accounts_router,
    segments_router,
    admin_router,
)

__all__ = ["ALL_ROUTERS"]

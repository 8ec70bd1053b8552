"""Core configuration and infrastructure helpers."""

from .config import (
    ADMIN_TOKEN,
    ALLOWED_CORS_ORIGINS,
    DB_RESET,
    FRONTEND_ORIGIN,
    SEGMENT_CACHE_TTL_SECONDS,
    STRAVA_CLIENT_ID,
    STRAVA_CLIENT_SECRET,
    STRAVA_REDIRECT_URI,
)
from .database import engine, get_session, session_scope
from .errors import (
    FatalAuthError,
    PersistenceError,
    RateLimitError,
    StageFetchError,
    SyncError,
)
from .time import utcnow

__all__ = [
    "ADMIN_TOKEN",
    "ALLOWED_CORS_ORIGINS",
    "DB_RESET",
    "FRONTEND_ORIGIN",
    "SEGMENT_CACHE_TTL_SECONDS",
    "STRAVA_CLIENT_ID",
    "STRAVA_CLIENT_SECRET",
    "STRAVA_REDIRECT_URI",
    "FatalAuthError",
    "PersistenceError",
    "RateLimitError",
    "StageFetchError",
    "SyncError",
    "engine",
    "get_session",
    "session_scope",
    "utcnow",
]

"""Application settings and environment helpers."""

from __future__ import annotations

import os
from datetime import date
from typing import Iterable, List

from dotenv import load_dotenv

load_dotenv(override=False)


def _require_env(name: str) -> str:
    """Return a required environment variable or raise an error."""

    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number") from exc


def _env_date(name: str, default: str) -> date:
    raw = os.getenv(name) or default
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a YYYY-MM-DD date") from exc


def _split_csv(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


# Strava OAuth configuration -------------------------------------------------
_STRAVA_CLIENT_ID_RAW = _require_env("STRAVA_CLIENT_ID")
try:
    STRAVA_CLIENT_ID = int(_STRAVA_CLIENT_ID_RAW)
except ValueError as exc:  # pragma: no cover - defensive guard
    raise RuntimeError("STRAVA_CLIENT_ID must be an integer") from exc

STRAVA_CLIENT_SECRET = _require_env("STRAVA_CLIENT_SECRET")
STRAVA_REDIRECT_URI = os.getenv(
    "STRAVA_REDIRECT_URI", "http://localhost:3000/api/strava/callback"
)
STRAVA_TIMEOUT_SECONDS = _env_float("STRAVA_TIMEOUT_SECONDS", 30.0)
STRAVA_MAX_RETRIES = _env_int("STRAVA_MAX_RETRIES", 3)
STRAVA_MAX_BACKOFF_SECONDS = _env_float("STRAVA_MAX_BACKOFF_SECONDS", 900.0)


# Web surface ----------------------------------------------------------------
# FRONTEND_ORIGIN can contain a comma-separated list for multi-domain deploys.
_frontend_origins = _split_csv(os.getenv("FRONTEND_ORIGIN", "http://localhost:3000"))

_local_dev_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

ALLOWED_CORS_ORIGINS = _unique([*_frontend_origins, *_local_dev_origins])
FRONTEND_ORIGIN = _frontend_origins[0] if _frontend_origins else ""

ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "changeme")


# Storage --------------------------------------------------------------------
DATABASE_URL = os.getenv("DATABASE_URL", "")
DB_RESET = _env_bool("DB_RESET", False)


# Sync pipeline --------------------------------------------------------------
SYNC_WINDOW_START = _env_date("SYNC_WINDOW_START", "2008-01-01")
SYNC_WINDOW_END = _env_date("SYNC_WINDOW_END", "2019-12-31")
SYNC_COURTESY_DELAY_MS = _env_int("SYNC_COURTESY_DELAY_MS", 200)
SYNC_PAGE_SIZE = _env_int("SYNC_PAGE_SIZE", 100)
SYNC_ACTIVITY_PAGE_CAP = _env_int("SYNC_ACTIVITY_PAGE_CAP", 10)
SYNC_EFFORT_PAGE_CAP = _env_int("SYNC_EFFORT_PAGE_CAP", 10)
SYNC_ACHIEVEMENT_PAGE_CAP = _env_int("SYNC_ACHIEVEMENT_PAGE_CAP", 5)

SEGMENT_CACHE_TTL_SECONDS = _env_float("SEGMENT_CACHE_TTL_SECONDS", 60.0)


# Logging --------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")


__all__ = [
    "ADMIN_TOKEN",
    "ALLOWED_CORS_ORIGINS",
    "DATABASE_URL",
    "DB_RESET",
    "FRONTEND_ORIGIN",
    "LOG_FORMAT",
    "LOG_LEVEL",
    "SEGMENT_CACHE_TTL_SECONDS",
    "STRAVA_CLIENT_ID",
    "STRAVA_CLIENT_SECRET",
    "STRAVA_MAX_BACKOFF_SECONDS",
    "STRAVA_MAX_RETRIES",
    "STRAVA_REDIRECT_URI",
    "STRAVA_TIMEOUT_SECONDS",
    "SYNC_ACHIEVEMENT_PAGE_CAP",
    "SYNC_ACTIVITY_PAGE_CAP",
    "SYNC_COURTESY_DELAY_MS",
    "SYNC_EFFORT_PAGE_CAP",
    "SYNC_PAGE_SIZE",
    "SYNC_WINDOW_END",
    "SYNC_WINDOW_START",
]

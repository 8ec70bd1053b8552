"""Database model for accounts linked to Strava."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, BigInteger, Column
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class SyncStatus:
    """Values of ``Account.sync_status``."""

    PENDING = "pending"
    SYNCING = "syncing"
    COMPLETE = "complete"
    ERROR = "error"


class Account(SQLModel, table=True):
    """Rider identity linked to a Strava athlete."""

    id: Optional[int] = ORMField(default=None, primary_key=True)
    strava_id: int = ORMField(sa_type=BigInteger, unique=True, index=True)
    name: str
    first_name: str = ""
    last_name: str = ""
    avatar_url: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None

    access_token: str
    refresh_token: str
    token_expires_at: int

    sync_status: str = ORMField(default=SyncStatus.PENDING, index=True)
    sync_progress: Optional[Dict[str, Any]] = ORMField(
        default=None, sa_column=Column(JSON)
    )
    last_sync_at: Optional[datetime] = None
    last_sync_error: Optional[str] = None

    total_rides: Optional[int] = None
    total_distance_mi: Optional[float] = None
    total_elevation_ft: Optional[int] = None
    member_since: Optional[date] = None
    last_ride: Optional[date] = None
    crown_count: Optional[int] = None

    connected_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["Account", "SyncStatus"]

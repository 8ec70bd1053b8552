"""Database model for leaderboard rows."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import BigInteger
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class EntryStatus:
    """Values of ``LeaderboardEntry.status``."""

    GHOST = "ghost"
    CLAIMED = "claimed"
    VERIFIED = "verified"


STATUS_PRIORITY = {
    EntryStatus.VERIFIED: 3,
    EntryStatus.CLAIMED: 2,
    EntryStatus.GHOST: 1,
}


class LeaderboardEntry(SQLModel, table=True):
    """One ranked result on a segment."""

    id: Optional[int] = ORMField(default=None, primary_key=True)
    segment_id: str = ORMField(foreign_key="segment.id", index=True)
    rank: Optional[int] = None
    rider_name: Optional[str] = None
    time_seconds: int
    time_display: str
    gap_seconds: Optional[int] = None
    gap_display: Optional[str] = None
    attempt_date: Optional[date] = None
    speed_mph: Optional[float] = None
    power_watts: Optional[int] = None

    status: str = ORMField(default=EntryStatus.GHOST, index=True)
    account_id: Optional[int] = ORMField(default=None, foreign_key="account.id", index=True)
    strava_effort_id: Optional[int] = ORMField(
        default=None, sa_type=BigInteger, unique=True
    )
    avatar_url: Optional[str] = None
    updated_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["EntryStatus", "LeaderboardEntry", "STATUS_PRIORITY"]

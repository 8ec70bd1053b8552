"""Database model for raw segment efforts."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger
from sqlmodel import Field as ORMField, SQLModel


class SegmentEffort(SQLModel, table=True):
    """Append-only log of one Strava attempt, keyed by its Strava id."""

    __tablename__ = "segment_effort"

    id: Optional[int] = ORMField(default=None, primary_key=True)
    account_id: int = ORMField(foreign_key="account.id", index=True)
    segment_id: str = ORMField(foreign_key="segment.id", index=True)
    strava_effort_id: int = ORMField(sa_type=BigInteger, unique=True, index=True)
    elapsed_time: int
    moving_time: Optional[int] = None
    start_date: Optional[datetime] = None
    average_watts: Optional[int] = None
    average_heartrate: Optional[int] = None
    max_heartrate: Optional[int] = None
    pr_rank: Optional[int] = None


__all__ = ["SegmentEffort"]

"""Database model for ride history."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger
from sqlmodel import Field as ORMField, SQLModel


class Activity(SQLModel, table=True):
    """A ride from the account's history, stored in imperial units."""

    id: Optional[int] = ORMField(default=None, primary_key=True)
    account_id: int = ORMField(foreign_key="account.id", index=True)
    strava_activity_id: int = ORMField(sa_type=BigInteger, unique=True, index=True)
    name: str = ""
    distance_mi: float = 0.0
    moving_time_seconds: int = 0
    elapsed_time_seconds: int = 0
    total_elevation_gain_ft: int = 0
    start_date: Optional[datetime] = None
    start_date_local: Optional[datetime] = None
    average_speed_mph: Optional[float] = None
    max_speed_mph: Optional[float] = None
    average_watts: Optional[int] = None
    kilojoules: Optional[int] = None
    suffer_score: Optional[int] = None


__all__ = ["Activity"]

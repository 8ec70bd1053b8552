"""Database model for club segments."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger
from sqlmodel import Field as ORMField, SQLModel


class Segment(SQLModel, table=True):
    """Club-curated course. Only visibility is edited after seeding."""

    id: str = ORMField(primary_key=True)
    strava_id: int = ORMField(sa_type=BigInteger, unique=True, index=True)
    name: str
    location: Optional[str] = None
    distance_km: Optional[float] = None
    distance_mi: Optional[float] = None
    elevation_gain_ft: Optional[float] = None
    grade: Optional[float] = None
    category: Optional[str] = None
    visible: bool = True
    sort_order: int = 0


__all__ = ["Segment"]

"""Database model for generated rider highlights."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class Highlight(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    account_id: int = ORMField(foreign_key="account.id", index=True)
    position: int = 0
    category: str
    title: str
    description: str
    stat_value: str
    stat_label: str
    segment_id: Optional[str] = None
    activity_strava_id: Optional[int] = ORMField(default=None, sa_type=BigInteger)
    rank_in_club: Optional[int] = None
    percentile: Optional[float] = None
    generated_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["Highlight"]

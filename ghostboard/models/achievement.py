"""Database model for segment crowns (KOM/QOM)."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger
from sqlmodel import Field as ORMField, SQLModel


class Achievement(SQLModel, table=True):
    """A segment the account currently leads. Replaced wholesale on each sync."""

    id: Optional[int] = ORMField(default=None, primary_key=True)
    account_id: int = ORMField(foreign_key="account.id", index=True)
    strava_segment_id: int = ORMField(sa_type=BigInteger)
    segment_name: str
    kind: str = "kom"
    time_seconds: int = 0
    time_display: str = "0:00"


__all__ = ["Achievement"]

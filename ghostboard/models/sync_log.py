"""Database model for the sync audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class SyncLog(SQLModel, table=True):
    """Immutable summary of one pipeline run."""

    __tablename__ = "sync_log"

    id: Optional[int] = ORMField(default=None, primary_key=True)
    account_id: int = ORMField(foreign_key="account.id", index=True)
    status: str
    details: Dict[str, Any] = ORMField(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["SyncLog"]

"""
Per-account sync status and progress.

The sync pipeline writes a full progress snapshot after every unit of work;
the status endpoint reads it back. Only the latest snapshot is kept.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..core.errors import PersistenceError
from ..core.time import utcnow
from ..models import Account, SyncStatus


class ProgressStep:
    SEGMENT_EFFORTS = "segment_efforts"
    ACTIVITIES = "activities"
    HIGHLIGHTS = "highlights"
    COMPLETE = "complete"


def initial_progress(segments_total: int) -> Dict[str, Any]:
    return {
        "step": ProgressStep.SEGMENT_EFFORTS,
        "segments_complete": 0,
        "segments_total": segments_total,
        "efforts_found": 0,
        "message": "Starting sync...",
    }


def _write(session: Session, account_id: int, **values: Any) -> int:
    try:
        result = session.execute(update(Account).where(Account.id == account_id).values(**values))
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceError(f"Failed to write sync state for account {account_id}: {exc}") from exc
    return result.rowcount


def claim_sync(session: Session, account_id: int, segments_total: int) -> bool:
    """Atomically move the account to ``syncing``. False when a run is already active."""

    try:
        result = session.execute(
            update(Account)
            .where(Account.id == account_id, Account.sync_status != SyncStatus.SYNCING)
            .values(
                sync_status=SyncStatus.SYNCING,
                sync_progress=initial_progress(segments_total),
                last_sync_error=None,
            )
        )
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceError(f"Failed to claim sync for account {account_id}: {exc}") from exc
    return result.rowcount == 1


def publish(session: Session, account_id: int, snapshot: Dict[str, Any]) -> None:
    """Replace the progress snapshot. Status follows the step."""

    status = SyncStatus.COMPLETE if snapshot.get("step") == ProgressStep.COMPLETE else SyncStatus.SYNCING
    _write(session, account_id, sync_status=status, sync_progress=dict(snapshot))


def mark_error(
    session: Session, account_id: int, message: str, snapshot: Optional[Dict[str, Any]] = None
) -> None:
    progress = {**(snapshot or {}), "message": message, "error": message}
    _write(
        session,
        account_id,
        sync_status=SyncStatus.ERROR,
        sync_progress=progress,
        last_sync_error=message,
    )


def mark_complete(session: Session, account_id: int, snapshot: Optional[Dict[str, Any]] = None) -> None:
    progress = {**(snapshot or {}), "step": ProgressStep.COMPLETE, "message": "Sync complete"}
    _write(
        session,
        account_id,
        sync_status=SyncStatus.COMPLETE,
        sync_progress=progress,
        last_sync_at=utcnow(),
        last_sync_error=None,
    )


def release(session: Session, account_id: int, message: str) -> bool:
    """
    Move an account still marked ``syncing`` to ``error``.

    Called when a run ends without a final status write, so the account can
    be claimed again. Returns True when the row was still ``syncing``.
    """

    try:
        result = session.execute(
            update(Account)
            .where(Account.id == account_id, Account.sync_status == SyncStatus.SYNCING)
            .values(
                sync_status=SyncStatus.ERROR,
                sync_progress={"message": message, "error": message},
                last_sync_error=message,
            )
        )
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceError(f"Failed to release sync for account {account_id}: {exc}") from exc
    return result.rowcount == 1


def read_status(session: Session, account_id: int) -> Optional[Dict[str, Any]]:
    account = session.get(Account, account_id)
    if account is None:
        return None
    session.refresh(account)
    return {
        "account_id": account.id,
        "sync_status": account.sync_status,
        "sync_progress": account.sync_progress,
        "last_sync_at": account.last_sync_at.isoformat() if account.last_sync_at else None,
        "last_sync_error": account.last_sync_error,
    }


__all__ = [
    "ProgressStep",
    "claim_sync",
    "initial_progress",
    "mark_complete",
    "mark_error",
    "publish",
    "read_status",
    "release",
]

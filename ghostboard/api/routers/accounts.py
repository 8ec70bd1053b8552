"""Account profile, sync trigger and status polling."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlmodel import Session

from ...core import get_session
from ...models import Account
from ...services.accounts import account_crowns, account_highlights, account_to_dict
from ...services.progress import read_status
from ...services.sync import SyncOrchestrator
from ..deps import get_orchestrator

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def _get_account(session: Session, account_id: int) -> Account:
    account = session.get(Account, account_id)
    if account is None:
        raise HTTPException(404, "Account not found")
    return account


@router.get("/{account_id}")
def account_profile(account_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Profile, ride totals, crown count and sync state."""

    account = _get_account(session, account_id)
    session.refresh(account)
    return account_to_dict(account)


@router.post("/{account_id}/sync")
def start_sync(
    account_id: int,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Start a sync in the background. A run already in flight is not duplicated."""

    _get_account(session, account_id)
    started = orchestrator.claim(account_id)
    if started:
        background_tasks.add_task(orchestrator.run_claimed, account_id)
    return {"started": started, **(read_status(session, account_id) or {})}


@router.get("/{account_id}/status")
def sync_status(account_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    status = read_status(session, account_id)
    if status is None:
        raise HTTPException(404, "Account not found")
    return status


@router.get("/{account_id}/highlights")
def account_highlight_reel(account_id: int, session: Session = Depends(get_session)) -> List[Dict[str, Any]]:
    """Highlights from the latest sync, in display order."""

    _get_account(session, account_id)
    return account_highlights(session, account_id)


@router.get("/{account_id}/crowns")
def account_crown_list(account_id: int, session: Session = Depends(get_session)) -> List[Dict[str, Any]]:
    _get_account(session, account_id)
    return account_crowns(session, account_id)


__all__ = ["router"]

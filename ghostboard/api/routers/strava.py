"""Strava OAuth routes."""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlmodel import Session, select

from ...core import get_session
from ...core.errors import StageFetchError
from ...models import Account, SyncStatus
from ...services.sync import SyncOrchestrator
from ...strava_client import auth_url, exchange_code_for_token
from ..deps import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/strava", tags=["strava"])


def _upsert_account(session: Session, token_data: Dict[str, Any], athlete: Dict[str, Any]) -> Account:
    athlete_id = athlete.get("id")
    if athlete_id is None:
        raise HTTPException(400, "Strava returned no athlete")

    first = athlete.get("firstname") or ""
    last = athlete.get("lastname") or ""
    values = {
        "name": f"{first} {last}".strip() or athlete.get("username") or str(athlete_id),
        "first_name": first,
        "last_name": last,
        "avatar_url": athlete.get("profile"),
        "city": athlete.get("city"),
        "region": athlete.get("state"),
        "access_token": token_data["access_token"],
        "refresh_token": token_data["refresh_token"],
        "token_expires_at": int(token_data["expires_at"]),
    }

    account = session.exec(select(Account).where(Account.strava_id == athlete_id)).first()
    if account:
        for key, value in values.items():
            setattr(account, key, value)
    else:
        account = Account(strava_id=athlete_id, sync_status=SyncStatus.PENDING, **values)
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


async def _fetch_athlete(orchestrator: SyncOrchestrator, token_data: Dict[str, Any]) -> Dict[str, Any]:
    """Token responses normally embed the athlete; fall back to ``GET /athlete`` when they do not."""

    try:
        async with orchestrator.client_factory(token_data["access_token"]) as client:
            return await client.get_athlete()
    except StageFetchError as exc:
        logger.warning("Athlete lookup failed: %s", exc)
        raise HTTPException(400, "Could not load the Strava athlete") from exc


@router.get("/auth-url")
def strava_auth_url(state: str = "state1") -> Dict[str, str]:
    return {"auth_url": auth_url(state)}


@router.get("/callback")
async def strava_callback(
    background_tasks: BackgroundTasks,
    code: str = "",
    error: str = "",
    session: Session = Depends(get_session),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """Link the Strava athlete to an account and kick off the first sync."""

    if error or not code:
        raise HTTPException(400, f"Strava authorization failed: {error or 'missing code'}")
    try:
        token_data = await exchange_code_for_token(code)
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Code exchange failed: %s", exc)
        raise HTTPException(400, "Could not exchange authorization code") from exc

    athlete = token_data.get("athlete") or await _fetch_athlete(orchestrator, token_data)
    account = _upsert_account(session, token_data, athlete)
    started = orchestrator.claim(account.id)
    if started:
        background_tasks.add_task(orchestrator.run_claimed, account.id)
    logger.info("Linked strava athlete %s to account %s", account.strava_id, account.id)
    return {"account_id": account.id, "name": account.name, "sync_started": started}


__all__ = ["router"]

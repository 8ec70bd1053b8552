"""Maintenance routes guarded by the admin token."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlmodel import Session

from ...core import PersistenceError, get_session
from ...models import Segment
from ...services.cache import SegmentCache
from ...services.leaderboard import recompute_segment_ranks
from ...services.seed import seed_ghosts
from ..deps import get_segment_cache
from ..security import require_admin

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/ghosts/seed")
def seed(
    payload: Dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    cache: SegmentCache = Depends(get_segment_cache),
) -> Dict[str, Any]:
    """Import a scraped leaderboard document as ghost rows."""

    results = seed_ghosts(session, payload)
    cache.invalidate()
    return results


@router.post("/segments/{slug}/rerank")
def rerank(
    slug: str,
    session: Session = Depends(get_session),
    cache: SegmentCache = Depends(get_segment_cache),
) -> Dict[str, Any]:
    if session.get(Segment, slug) is None:
        raise HTTPException(404, "Segment not found")
    try:
        ranked = recompute_segment_ranks(session, slug)
    except PersistenceError as exc:
        raise HTTPException(500, str(exc)) from exc
    cache.invalidate()
    return {"segment_id": slug, "ranked": ranked}


__all__ = ["router"]

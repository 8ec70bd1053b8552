"""Segment leaderboards and the Find Me view."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from ...core import get_session
from ...models import Segment
from ...services.cache import SegmentCache
from ...services.find_me import find_me
from ...services.leaderboard import (
    DISPLAY_LIMIT,
    display_leaderboard,
    load_segment_boards,
    segment_entries,
    segment_to_dict,
)
from ..deps import get_segment_cache

router = APIRouter(prefix="/api/segments", tags=["segments"])


def _get_segment(session: Session, slug: str) -> Segment:
    segment = session.get(Segment, slug)
    if segment is None:
        raise HTTPException(404, "Segment not found")
    return segment


@router.get("")
def list_segments(
    session: Session = Depends(get_session),
    cache: SegmentCache = Depends(get_segment_cache),
) -> List[Dict[str, Any]]:
    return cache.get_or_load(lambda: load_segment_boards(session))


@router.get("/{slug}/leaderboard")
def segment_leaderboard(
    slug: str,
    limit: int = Query(DISPLAY_LIMIT, ge=1, le=500),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    segment = _get_segment(session, slug)
    return {
        "segment": segment_to_dict(segment),
        "leaderboard": display_leaderboard(segment_entries(session, slug), limit),
    }


@router.get("/{slug}/find-me")
def segment_find_me(
    slug: str,
    account_id: int,
    context: int = Query(5, ge=0, le=50),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    _get_segment(session, slug)
    result = find_me(segment_entries(session, slug), account_id, context)
    if result is None:
        raise HTTPException(404, "No leaderboard entry for this account")
    return result.to_dict()


__all__ = ["router"]

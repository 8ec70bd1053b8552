"""The club's fixed segment set."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlmodel import Session, select

from .models import Segment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClubSegment:
    strava_id: int
    slug: str
    name: str


# Iteration order of the sync pipeline.
CLUB_SEGMENTS: List[ClubSegment] = [
    ClubSegment(229781, "hawk-hill", "Hawk Hill"),
    ClubSegment(241885, "radio-road", "Radio Road"),
    ClubSegment(8109834, "old-la-honda", "Old La Honda"),
    ClubSegment(4793848, "hwy1-muir-beach", "Hwy 1 from Muir Beach"),
    ClubSegment(652851, "alpe-dhuez", "Alpe d'Huez"),
    ClubSegment(1173191, "four-corners", "Four Corners"),
    ClubSegment(1707949, "bofax-climb", "BoFax Climb"),
    ClubSegment(3681888, "bourg-doisans", "Bourg d'Oisans"),
]

_BY_SLUG: Dict[str, ClubSegment] = {seg.slug: seg for seg in CLUB_SEGMENTS}


def segment_by_slug(slug: str) -> Optional[ClubSegment]:
    return _BY_SLUG.get(slug)


def ensure_segments(session: Session) -> int:
    """Insert any club segment missing from the table. Returns how many were added."""

    existing = set(session.exec(select(Segment.id)).all())
    added = 0
    for order, seg in enumerate(CLUB_SEGMENTS):
        if seg.slug in existing:
            continue
        session.add(Segment(id=seg.slug, strava_id=seg.strava_id, name=seg.name, sort_order=order))
        added += 1
    if added:
        session.commit()
        logger.info("Seeded %d club segments", added)
    return added


__all__ = [
    "CLUB_SEGMENTS",
    "ClubSegment",
    "ensure_segments",
    "segment_by_slug",
]

"""Import of the scraped club leaderboards as ghost rows."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import PersistenceError
from ..models import EntryStatus, LeaderboardEntry, Segment
from .formatting import METERS_TO_FEET, parse_leading_number, parse_time_to_seconds, seconds_to_display
from .leaderboard import recompute_segment_ranks

logger = logging.getLogger(__name__)

_DATE_FORMATS = ("%Y-%m-%d", "%b %d, %Y", "%B %d, %Y", "%m/%d/%Y")


def _parse_date(raw: Any) -> Optional[date]:
    if not raw:
        return None
    if isinstance(raw, date):
        return raw
    text = str(raw).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _upsert_segment(session: Session, payload: Mapping[str, Any]) -> Segment:
    slug = payload["id"]
    segment = session.get(Segment, slug)
    if segment is None:
        segment = Segment(id=slug, strava_id=int(payload["strava_id"]), name=payload.get("name") or slug)

    distance = payload.get("distance") or {}
    elevation = payload.get("elevation") or {}
    gain_ft = elevation.get("gain_ft")
    if gain_ft is None and elevation.get("gain_m") is not None:
        gain_ft = round(elevation["gain_m"] * METERS_TO_FEET)

    segment.name = payload.get("name") or segment.name
    segment.location = payload.get("location", segment.location)
    segment.distance_km = distance.get("km", segment.distance_km)
    segment.distance_mi = distance.get("mi", segment.distance_mi)
    segment.elevation_gain_ft = gain_ft if gain_ft is not None else segment.elevation_gain_ft
    segment.grade = payload.get("grade", segment.grade)
    segment.category = payload.get("category", segment.category)
    if "visible" in payload:
        segment.visible = bool(payload["visible"])
    session.add(segment)
    return segment


def _ghost_exists(session: Session, segment_id: str, rider_name: Optional[str], time_seconds: int) -> bool:
    statement = select(LeaderboardEntry.id).where(
        LeaderboardEntry.segment_id == segment_id,
        LeaderboardEntry.status == EntryStatus.GHOST,
        LeaderboardEntry.rider_name == rider_name,
        LeaderboardEntry.time_seconds == time_seconds,
    )
    return session.exec(statement).first() is not None


def seed_ghosts(session: Session, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Load ``{"segments": [...]}`` into the store.

    Each segment is upserted, its scraped rows are inserted as ghosts (an
    identical ghost already present is skipped) and the segment is re-ranked.
    Bad rows are reported in ``errors`` and skipped.
    """

    results: Dict[str, Any] = {"segments": 0, "entries": 0, "skipped": 0, "errors": []}
    errors: List[str] = results["errors"]

    for seg_payload in payload.get("segments") or []:
        slug = seg_payload.get("id")
        if not slug or seg_payload.get("strava_id") is None:
            errors.append(f"Segment without id/strava_id: {seg_payload.get('name')!r}")
            continue
        rows = seg_payload.get("leaderboard")
        if rows is None:
            rows = seg_payload.get("mission_cycling_leaderboard") or []

        added = skipped = 0
        try:
            _upsert_segment(session, seg_payload)
            for row in rows:
                time_seconds = parse_time_to_seconds(row.get("time"))
                if time_seconds is None:
                    errors.append(f"{slug}: unreadable time {row.get('time')!r} for {row.get('name')!r}")
                    continue
                rider_name = row.get("name") or None
                if _ghost_exists(session, slug, rider_name, time_seconds):
                    skipped += 1
                    continue
                power = parse_leading_number(row.get("power"))
                session.add(
                    LeaderboardEntry(
                        segment_id=slug,
                        rider_name=rider_name,
                        time_seconds=time_seconds,
                        time_display=seconds_to_display(time_seconds),
                        attempt_date=_parse_date(row.get("date")),
                        speed_mph=parse_leading_number(row.get("speed")),
                        power_watts=int(power) if power is not None else None,
                        status=EntryStatus.GHOST,
                    )
                )
                added += 1
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to seed segment %s", slug)
            errors.append(f"{slug}: {exc}")
            continue

        results["entries"] += added
        results["skipped"] += skipped
        try:
            recompute_segment_ranks(session, slug)
        except PersistenceError as exc:
            logger.warning("Seeded %s but re-rank failed: %s", slug, exc)
            errors.append(str(exc))
        results["segments"] += 1

    logger.info(
        "Ghost seed: %d segments, %d entries, %d skipped, %d errors",
        results["segments"],
        results["entries"],
        results["skipped"],
        len(errors),
    )
    return results


__all__ = ["seed_ghosts"]

"""Read side for a synced account: profile, totals, crowns and highlights."""

from __future__ import annotations

from typing import Any, Dict, List

from sqlmodel import Session, select

from ..models import Account, Achievement, Highlight


def account_to_dict(account: Account) -> Dict[str, Any]:
    """Public profile. Tokens never leave the store."""

    return {
        "id": account.id,
        "strava_id": account.strava_id,
        "name": account.name,
        "first_name": account.first_name,
        "last_name": account.last_name,
        "avatar_url": account.avatar_url,
        "city": account.city,
        "region": account.region,
        "stats": {
            "total_rides": account.total_rides,
            "total_distance_mi": account.total_distance_mi,
            "total_elevation_ft": account.total_elevation_ft,
            "member_since": account.member_since.isoformat() if account.member_since else None,
            "last_ride": account.last_ride.isoformat() if account.last_ride else None,
            "crown_count": account.crown_count,
        },
        "sync_status": account.sync_status,
        "last_sync_at": account.last_sync_at.isoformat() if account.last_sync_at else None,
        "last_sync_error": account.last_sync_error,
        "connected_at": account.connected_at.isoformat() if account.connected_at else None,
    }


def highlight_to_dict(highlight: Highlight) -> Dict[str, Any]:
    return {
        "position": highlight.position,
        "category": highlight.category,
        "title": highlight.title,
        "description": highlight.description,
        "stat_value": highlight.stat_value,
        "stat_label": highlight.stat_label,
        "segment_id": highlight.segment_id,
        "activity_strava_id": highlight.activity_strava_id,
        "rank_in_club": highlight.rank_in_club,
        "percentile": highlight.percentile,
        "generated_at": highlight.generated_at.isoformat() if highlight.generated_at else None,
    }


def achievement_to_dict(achievement: Achievement) -> Dict[str, Any]:
    return {
        "strava_segment_id": achievement.strava_segment_id,
        "segment_name": achievement.segment_name,
        "kind": achievement.kind,
        "time_seconds": achievement.time_seconds,
        "time_display": achievement.time_display,
    }


def account_highlights(session: Session, account_id: int) -> List[Dict[str, Any]]:
    rows = session.exec(
        select(Highlight)
        .where(Highlight.account_id == account_id)
        .order_by(Highlight.position, Highlight.id)
    ).all()
    return [highlight_to_dict(row) for row in rows]


def account_crowns(session: Session, account_id: int) -> List[Dict[str, Any]]:
    rows = session.exec(
        select(Achievement)
        .where(Achievement.account_id == account_id)
        .order_by(Achievement.segment_name, Achievement.id)
    ).all()
    return [achievement_to_dict(row) for row in rows]


__all__ = [
    "account_crowns",
    "account_highlights",
    "account_to_dict",
    "achievement_to_dict",
    "highlight_to_dict",
]

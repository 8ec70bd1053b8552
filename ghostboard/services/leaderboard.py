"""Leaderboard storage: applying reconciliation actions, re-ranking and display."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import and_, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import PersistenceError
from ..core.time import utcnow
from ..models import STATUS_PRIORITY, EntryStatus, LeaderboardEntry, Segment
from .formatting import format_gap
from .reconcile import (
    AccountIdentity,
    ActionKind,
    ReconciliationAction,
    calculate_ranks,
    normalize_name,
    rank_sort_key,
)

logger = logging.getLogger(__name__)

DISPLAY_LIMIT = 10

_registry_lock = threading.Lock()
_segment_locks: Dict[str, threading.Lock] = {}


def _segment_lock(segment_id: str) -> threading.Lock:
    with _registry_lock:
        lock = _segment_locks.get(segment_id)
        if lock is None:
            lock = _segment_locks[segment_id] = threading.Lock()
        return lock


@dataclass
class ApplyResult:
    verified: int = 0
    updated: int = 0
    inserted: int = 0
    touched_segments: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def segment_entries(session: Session, segment_id: str) -> List[LeaderboardEntry]:
    return list(
        session.exec(
            select(LeaderboardEntry)
            .where(LeaderboardEntry.segment_id == segment_id)
            .order_by(LeaderboardEntry.time_seconds, LeaderboardEntry.id)
        ).all()
    )


def unverified_entries(
    session: Session,
    segment_ids: Optional[Iterable[str]] = None,
    account_id: Optional[int] = None,
) -> List[LeaderboardEntry]:
    """Rows still open to reconciliation: unverified and unowned (or owned by ``account_id``)."""

    statement = select(LeaderboardEntry).where(
        LeaderboardEntry.status != EntryStatus.VERIFIED,
        _open_to(account_id),
    )
    if segment_ids is not None:
        statement = statement.where(LeaderboardEntry.segment_id.in_(list(segment_ids)))
    return list(session.exec(statement.order_by(LeaderboardEntry.id)).all())


def _open_to(account_id: Optional[int]):
    if account_id is None:
        return LeaderboardEntry.account_id.is_(None)
    return or_(LeaderboardEntry.account_id.is_(None), LeaderboardEntry.account_id == account_id)


def owned_entries(session: Session, account_id: int) -> List[LeaderboardEntry]:
    return list(
        session.exec(
            select(LeaderboardEntry)
            .where(
                LeaderboardEntry.account_id == account_id,
                LeaderboardEntry.status == EntryStatus.VERIFIED,
            )
            .order_by(LeaderboardEntry.id)
        ).all()
    )


def _verified_values(identity: AccountIdentity, action: ReconciliationAction) -> Dict[str, Any]:
    effort = action.effort
    return {
        "status": EntryStatus.VERIFIED,
        "account_id": identity.account_id,
        "avatar_url": identity.avatar_url,
        "time_seconds": action.time_seconds,
        "time_display": action.time_display,
        "attempt_date": effort.start_date.date() if effort.start_date else None,
        "power_watts": effort.average_watts,
        "strava_effort_id": effort.strava_effort_id,
        "updated_at": utcnow(),
    }


def _claim_row(session: Session, identity: AccountIdentity, action: ReconciliationAction) -> bool:
    """Compare-and-swap: only unowned unverified rows (or rows already ours) are taken."""

    result = session.execute(
        update(LeaderboardEntry)
        .where(
            LeaderboardEntry.id == action.entry_id,
            or_(
                and_(
                    LeaderboardEntry.status != EntryStatus.VERIFIED,
                    LeaderboardEntry.account_id.is_(None),
                ),
                LeaderboardEntry.account_id == identity.account_id,
            ),
        )
        .values(**_verified_values(identity, action))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _insert_row(session: Session, identity: AccountIdentity, action: ReconciliationAction) -> None:
    session.add(
        LeaderboardEntry(
            segment_id=action.segment_id,
            rider_name=identity.name,
            **_verified_values(identity, action),
        )
    )


def apply_actions(
    session: Session, identity: AccountIdentity, actions: Sequence[ReconciliationAction]
) -> ApplyResult:
    """
    Write each action in its own transaction.

    A matched row that another account verified or claimed in the meantime is left alone
    and the effort is inserted as a new row instead. A failed write is
    recorded and the remaining actions still run.
    """

    outcome = ApplyResult()
    for action in actions:
        try:
            kind = action.kind
            if action.entry_id is not None and not _claim_row(session, identity, action):
                logger.info(
                    "Entry %s on %s was taken by another account; inserting instead",
                    action.entry_id,
                    action.segment_id,
                )
                kind = ActionKind.INSERT
            if kind == ActionKind.INSERT:
                _insert_row(session, identity, action)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to apply %s on %s", action.kind, action.segment_id)
            outcome.errors.append(f"{action.segment_id}: {action.kind} failed: {exc}")
            continue

        if kind == ActionKind.VERIFY:
            outcome.verified += 1
        elif kind == ActionKind.UPDATE:
            outcome.updated += 1
        else:
            outcome.inserted += 1
        if action.segment_id not in outcome.touched_segments:
            outcome.touched_segments.append(action.segment_id)
    session.expire_all()
    return outcome


def recompute_segment_ranks(session: Session, segment_id: str) -> int:
    """
    Re-derive rank and gap for every stored row of a segment.

    Runs under a per-segment lock and inside one transaction with the rows
    selected FOR UPDATE, so concurrent syncs serialise on the segment.
    Returns the number of rows ranked.
    """

    with _segment_lock(segment_id):
        try:
            rows = list(
                session.exec(
                    select(LeaderboardEntry)
                    .where(LeaderboardEntry.segment_id == segment_id)
                    .with_for_update()
                ).all()
            )
            by_id = {row.id: row for row in rows}
            for position in calculate_ranks(rows):
                row = by_id[position.entry_id]
                row.rank = position.rank
                row.gap_seconds = position.gap_seconds
                row.gap_display = position.gap_display
                session.add(row)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Failed to re-rank {segment_id}: {exc}") from exc
    logger.debug("Re-ranked %d rows on %s", len(rows), segment_id)
    return len(rows)


def entry_to_dict(entry: LeaderboardEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "segment_id": entry.segment_id,
        "rank": entry.rank,
        "rider_name": entry.rider_name,
        "time_seconds": entry.time_seconds,
        "time_display": entry.time_display,
        "gap_seconds": entry.gap_seconds,
        "gap_display": entry.gap_display,
        "date": entry.attempt_date.isoformat() if entry.attempt_date else None,
        "speed_mph": entry.speed_mph,
        "power_watts": entry.power_watts,
        "status": entry.status,
        "account_id": entry.account_id,
        "avatar_url": entry.avatar_url,
    }


def display_leaderboard(entries: Iterable[LeaderboardEntry], limit: int = DISPLAY_LIMIT) -> List[Dict[str, Any]]:
    """
    Rows to show for a segment.

    One row per normalized rider name, preferring verified over claimed over
    ghost and then the faster time. Lower-priority duplicates are only hidden
    here, never deleted. Unnamed rows are never merged. Rank and gap are
    recomputed over the shown rows.
    """

    best: Dict[str, LeaderboardEntry] = {}
    unnamed: List[LeaderboardEntry] = []
    for entry in entries:
        key = normalize_name(entry.rider_name)
        if not key:
            unnamed.append(entry)
            continue
        current = best.get(key)
        if current is None or _display_preference(entry) > _display_preference(current):
            best[key] = entry

    shown = sorted([*best.values(), *unnamed], key=rank_sort_key)[: max(0, limit)]
    if not shown:
        return []
    leader_time = shown[0].time_seconds
    rows: List[Dict[str, Any]] = []
    for index, entry in enumerate(shown):
        gap = None if index == 0 else entry.time_seconds - leader_time
        row = entry_to_dict(entry)
        row.update(rank=index + 1, gap_seconds=gap, gap_display=format_gap(gap))
        rows.append(row)
    return rows


def _display_preference(entry: LeaderboardEntry) -> tuple:
    return (STATUS_PRIORITY.get(entry.status, 0), -entry.time_seconds)


def segment_to_dict(segment: Segment) -> Dict[str, Any]:
    return {
        "id": segment.id,
        "strava_id": segment.strava_id,
        "name": segment.name,
        "location": segment.location,
        "distance_km": segment.distance_km,
        "distance_mi": segment.distance_mi,
        "elevation_gain_ft": segment.elevation_gain_ft,
        "grade": segment.grade,
        "category": segment.category,
    }


def load_segment_boards(session: Session, limit: int = DISPLAY_LIMIT) -> List[Dict[str, Any]]:
    """Visible segments in club order, each with its display leaderboard."""

    segments = session.exec(
        select(Segment).where(Segment.visible == True).order_by(Segment.sort_order)  # noqa: E712
    ).all()
    boards: List[Dict[str, Any]] = []
    for segment in segments:
        board = segment_to_dict(segment)
        board["leaderboard"] = display_leaderboard(segment_entries(session, segment.id), limit)
        boards.append(board)
    return boards


__all__ = [
    "ApplyResult",
    "DISPLAY_LIMIT",
    "apply_actions",
    "display_leaderboard",
    "entry_to_dict",
    "load_segment_boards",
    "owned_entries",
    "recompute_segment_ranks",
    "segment_entries",
    "segment_to_dict",
    "unverified_entries",
]

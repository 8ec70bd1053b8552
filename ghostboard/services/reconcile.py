"""
Leaderboard reconciliation.

Matches an account's best effort per segment against leaderboard rows that
are not yet verified, and decides for each segment whether to verify a row,
overwrite its time, or insert a new one. Everything here is pure; the sync
pipeline applies the returned actions to storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from .formatting import format_gap, seconds_to_display

# Matched rows within this many seconds of the fetched effort are the same attempt.
VERIFY_TOLERANCE_SECONDS = 5
MAX_TYPO_DISTANCE = 2


class ActionKind:
    VERIFY = "verify"
    UPDATE = "update"
    INSERT = "insert"


class RankableRow(Protocol):
    id: Optional[int]
    time_seconds: int


class CandidateRow(RankableRow, Protocol):
    segment_id: str
    rider_name: Optional[str]
    account_id: Optional[int]


@dataclass(frozen=True)
class AccountIdentity:
    account_id: int
    name: str
    first_name: str = ""
    last_name: str = ""
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class BestEffort:
    segment_id: str
    elapsed_time: int
    strava_effort_id: int
    start_date: Optional[datetime] = None
    average_watts: Optional[int] = None


@dataclass(frozen=True)
class ReconciliationAction:
    kind: str
    segment_id: str
    time_seconds: int
    time_display: str
    effort: BestEffort
    entry_id: Optional[int] = None
    previous_time: Optional[int] = None


@dataclass(frozen=True)
class RankedPosition:
    entry_id: Optional[int]
    rank: int
    gap_seconds: Optional[int]
    gap_display: Optional[str]


def normalize_name(name: Optional[str]) -> str:
    """Lowercase, trim and collapse internal whitespace."""

    return " ".join((name or "").lower().split())


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def _name_rules(identity: AccountIdentity) -> List[Callable[[str], bool]]:
    full = normalize_name(identity.name)
    first = normalize_name(identity.first_name)
    last = normalize_name(identity.last_name)

    rules: List[Callable[[str], bool]] = []
    if full:
        rules.append(lambda ghost: ghost == full)
    if first and last:
        initial = f"{first} {last[0]}"
        rules.append(lambda ghost: ghost in (initial, f"{initial}."))
        rules.append(lambda ghost: ghost == f"{first} {last}")
        rules.append(lambda ghost: ghost == f"{last} {first}")
        rules.append(lambda ghost: first in ghost and last in ghost)
    if full:
        rules.append(lambda ghost: levenshtein(ghost, full) <= MAX_TYPO_DISTANCE)
    return rules


def find_name_match(identity: AccountIdentity, rows: Iterable[CandidateRow]) -> Optional[CandidateRow]:
    """
    Return the row whose rider name matches the account, or None.

    Rules are tried strictest first (exact, first + last initial, first + last,
    reversed, containment, edit distance); a row matched by an earlier rule
    beats any row matched only by a later one, so the scan is rule-major: an
    exact match on a later row wins over a typo match on an earlier row.
    Unnamed rows never match.
    """

    named = [(normalize_name(row.rider_name), row) for row in rows if row.rider_name]
    for rule in _name_rules(identity):
        for ghost_name, row in named:
            if ghost_name and rule(ghost_name):
                return row
    return None


def _action_for(
    effort: BestEffort, row: Optional[CandidateRow], segment_id: str
) -> ReconciliationAction:
    display = seconds_to_display(effort.elapsed_time)
    if row is None:
        return ReconciliationAction(
            kind=ActionKind.INSERT,
            segment_id=segment_id,
            time_seconds=effort.elapsed_time,
            time_display=display,
            effort=effort,
        )
    close = abs(row.time_seconds - effort.elapsed_time) < VERIFY_TOLERANCE_SECONDS
    return ReconciliationAction(
        kind=ActionKind.VERIFY if close else ActionKind.UPDATE,
        segment_id=segment_id,
        time_seconds=effort.elapsed_time,
        time_display=display,
        effort=effort,
        entry_id=row.id,
        previous_time=row.time_seconds,
    )


def reconcile(
    identity: AccountIdentity,
    best_efforts: Mapping[str, BestEffort],
    unverified_rows: Sequence[CandidateRow],
    owned_rows: Sequence[CandidateRow] = (),
) -> List[ReconciliationAction]:
    """
    Decide one action per segment in ``best_efforts``.

    ``owned_rows`` are rows already verified for this account (from an earlier
    sync). A segment with such a row re-targets it instead of matching ghosts,
    so a re-sync never leaves the account with two verified rows. Rows held by
    another account are never candidates.
    """

    owned_by_segment: Dict[str, CandidateRow] = {}
    for row in owned_rows:
        owned_by_segment.setdefault(row.segment_id, row)

    actions: List[ReconciliationAction] = []
    for segment_id, effort in best_efforts.items():
        target = owned_by_segment.get(segment_id)
        if target is None:
            candidates = [
                row
                for row in unverified_rows
                if row.segment_id == segment_id and row.account_id in (None, identity.account_id)
            ]
            target = find_name_match(identity, candidates)
        actions.append(_action_for(effort, target, segment_id))
    return actions


def rank_sort_key(row: RankableRow) -> tuple:
    return (row.time_seconds, row.id if row.id is not None else 0)


def calculate_ranks(rows: Iterable[RankableRow]) -> List[RankedPosition]:
    """Dense 1-based ranks by ascending time, with gaps to the leader.

    Derived only from the time set; previous rank values are ignored. Equal
    times keep a stable order by id.
    """

    ordered = sorted(rows, key=rank_sort_key)
    if not ordered:
        return []
    leader_time = ordered[0].time_seconds
    positions: List[RankedPosition] = []
    for index, row in enumerate(ordered):
        gap = None if index == 0 else row.time_seconds - leader_time
        positions.append(
            RankedPosition(entry_id=row.id, rank=index + 1, gap_seconds=gap, gap_display=format_gap(gap))
        )
    return positions


__all__ = [
    "AccountIdentity",
    "ActionKind",
    "BestEffort",
    "RankedPosition",
    "ReconciliationAction",
    "calculate_ranks",
    "find_name_match",
    "levenshtein",
    "normalize_name",
    "rank_sort_key",
    "reconcile",
]

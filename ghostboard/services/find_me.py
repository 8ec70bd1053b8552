"""The "Find Me" window around an account's row on one segment."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..models import LeaderboardEntry
from .formatting import format_gap, seconds_to_display
from .reconcile import rank_sort_key

TARGET_RANK = 10


@dataclass
class FindMeRow:
    entry_id: Optional[int]
    rank: int
    rider_name: Optional[str]
    time_seconds: int
    time_display: str
    gap_display: Optional[str]
    status: str
    is_current_user: bool


@dataclass
class FindMeResult:
    user_rank: int
    user_entry: FindMeRow
    surrounding: List[FindMeRow] = field(default_factory=list)
    total_entries: int = 0
    gap_to_top10: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_rank": self.user_rank,
            "user_entry": vars(self.user_entry),
            "surrounding": [vars(row) for row in self.surrounding],
            "total_entries": self.total_entries,
            "gap_to_top10": self.gap_to_top10,
            "gap_to_top10_display": (
                seconds_to_display(self.gap_to_top10) if self.gap_to_top10 is not None else None
            ),
        }


def find_me(
    entries: Sequence[LeaderboardEntry], account_id: int, context_size: int = 5
) -> Optional[FindMeResult]:
    """
    Rank ``entries`` locally by time and return the rows around the account's.

    Storage is not touched. Returns None when the account owns no row. The
    window holds up to ``context_size`` rows on each side, clamped to the list.
    ``gap_to_top10`` is only set when the account sits below 10th place.
    """

    ordered = sorted(entries, key=rank_sort_key)
    user_index = next(
        (index for index, entry in enumerate(ordered) if entry.account_id == account_id),
        None,
    )
    if user_index is None:
        return None

    leader_time = ordered[0].time_seconds
    rows = [
        FindMeRow(
            entry_id=entry.id,
            rank=index + 1,
            rider_name=entry.rider_name,
            time_seconds=entry.time_seconds,
            time_display=entry.time_display,
            gap_display=format_gap(None if index == 0 else entry.time_seconds - leader_time),
            status=entry.status,
            is_current_user=index == user_index,
        )
        for index, entry in enumerate(ordered)
    ]

    context_size = max(0, context_size)
    start = max(0, user_index - context_size)
    end = min(len(rows), user_index + context_size + 1)

    user_rank = user_index + 1
    gap_to_top10 = None
    if user_rank > TARGET_RANK:
        gap_to_top10 = ordered[user_index].time_seconds - ordered[TARGET_RANK - 1].time_seconds

    return FindMeResult(
        user_rank=user_rank,
        user_entry=rows[user_index],
        surrounding=rows[start:end],
        total_entries=len(rows),
        gap_to_top10=gap_to_top10,
    )


__all__ = ["FindMeResult", "FindMeRow", "find_me"]

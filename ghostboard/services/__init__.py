"""Service layer helpers."""

from .cache import SegmentCache
from .find_me import FindMeResult, find_me
from .highlights import HighlightRecord, generate_highlights
from .leaderboard import (
    apply_actions,
    display_leaderboard,
    load_segment_boards,
    recompute_segment_ranks,
)
from .reconcile import (
    AccountIdentity,
    ActionKind,
    BestEffort,
    ReconciliationAction,
    calculate_ranks,
    find_name_match,
    reconcile,
)
from .seed import seed_ghosts
from .sync import SyncOrchestrator, SyncResult

__all__ = [
    "AccountIdentity",
    "ActionKind",
    "BestEffort",
    "FindMeResult",
    "HighlightRecord",
    "ReconciliationAction",
    "SegmentCache",
    "SyncOrchestrator",
    "SyncResult",
    "apply_actions",
    "calculate_ranks",
    "display_leaderboard",
    "find_me",
    "find_name_match",
    "generate_highlights",
    "load_segment_boards",
    "recompute_segment_ranks",
    "reconcile",
    "seed_ghosts",
]

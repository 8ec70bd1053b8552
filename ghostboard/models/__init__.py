"""Database model exports."""

from .account import Account, SyncStatus
from .achievement import Achievement
from .activity import Activity
from .effort import SegmentEffort
from .highlight import Highlight
from .leaderboard import STATUS_PRIORITY, EntryStatus, LeaderboardEntry
from .segment import Segment
from .sync_log import SyncLog

__all__ = [
    "Account",
    "Achievement",
    "Activity",
    "EntryStatus",
    "Highlight",
    "LeaderboardEntry",
    "STATUS_PRIORITY",
    "Segment",
    "SegmentEffort",
    "SyncLog",
    "SyncStatus",
]

"""Time helpers."""

from __future__ import annotations

from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


def day_start_epoch(day: date) -> int:
    return int(datetime.combine(day, time(0, 0), tzinfo=timezone.utc).timestamp())


def parse_iso(raw: str | None) -> datetime | None:
    """Parse a Strava ISO8601 timestamp ("...Z" suffix allowed)."""
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = ["day_start_epoch", "parse_iso", "utcnow"]

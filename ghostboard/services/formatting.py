"""Display formatting and unit conversion."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional, Union

METERS_TO_MILES = 0.000621371
METERS_TO_FEET = 3.28084
MPS_TO_MPH = 2.23694


def meters_to_miles(meters: float) -> float:
    return round(meters * METERS_TO_MILES, 2)


def meters_to_feet(meters: float) -> int:
    return round(meters * METERS_TO_FEET)


def mps_to_mph(mps: float) -> float:
    return round(mps * MPS_TO_MPH, 1)


def seconds_to_display(seconds: int) -> str:
    """``h:mm:ss`` for an hour or more, ``m:ss`` otherwise."""

    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_gap(gap_seconds: Optional[int]) -> Optional[str]:
    """``+M:SS``, or ``+Ns`` under a minute. None for the leader."""

    if gap_seconds is None:
        return None
    if gap_seconds < 60:
        return f"+{gap_seconds}s"
    return f"+{seconds_to_display(gap_seconds)}"


def parse_time_to_seconds(raw: Union[str, int, None]) -> Optional[int]:
    """Parse ``h:mm:ss``, ``m:ss`` or a bare number of seconds."""

    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    text = raw.strip()
    if not text:
        return None
    parts = text.split(":")
    if len(parts) > 3:
        return None
    try:
        values = [int(part) for part in parts]
    except ValueError:
        return None
    total = 0
    for value in values:
        total = total * 60 + value
    return total


_NUMBER = re.compile(r"[-+]?\d+(?:\.\d+)?")


def parse_leading_number(raw: Union[str, float, int, None]) -> Optional[float]:
    """First number in strings like ``"15.8 mi/h"`` or ``"464 W"``."""

    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    match = _NUMBER.search(raw.replace(",", ""))
    return float(match.group()) if match else None


def format_month_year(value: Union[date, datetime, None], long: bool = False) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%B %Y" if long else "%b %Y")


__all__ = [
    "format_gap",
    "format_month_year",
    "meters_to_feet",
    "meters_to_miles",
    "mps_to_mph",
    "parse_leading_number",
    "parse_time_to_seconds",
    "seconds_to_display",
]

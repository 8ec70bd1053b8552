"""
Personal highlight reel generated after a sync.

Takes the account's rides and segment efforts as plain dicts and returns up
to eight ranked highlight records. Everyone gets at least a "first ride".
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .formatting import seconds_to_display

MAX_HIGHLIGHTS = 8
CLUB_SEGMENT_TOTAL = 8


@dataclass
class HighlightRecord:
    category: str
    title: str
    description: str
    stat_value: str
    stat_label: str
    segment_id: Optional[str] = None
    activity_strava_id: Optional[int] = None
    rank_in_club: Optional[int] = None
    percentile: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _fmt_date(value: Optional[datetime]) -> str:
    if value is None:
        return "an unknown date"
    return f"{value:%B} {value.day}, {value.year}"


def _segment_highlights(efforts: Sequence[Mapping[str, Any]]) -> List[HighlightRecord]:
    by_segment: Dict[str, List[Mapping[str, Any]]] = defaultdict(list)
    for effort in efforts:
        by_segment[effort["segment_id"]].append(effort)

    records: List[HighlightRecord] = []
    if not by_segment:
        return records

    home_id, home_efforts = max(by_segment.items(), key=lambda item: len(item[1]))
    if len(home_efforts) >= 5:
        name = home_efforts[0].get("segment_name") or home_id
        best = min(e["elapsed_time"] for e in home_efforts)
        records.append(
            HighlightRecord(
                category="home_turf",
                title="Home Turf",
                description=f"{len(home_efforts)} attempts on {name}. PR: {seconds_to_display(best)}",
                stat_value=f"{len(home_efforts)}×",
                stat_label=name,
                segment_id=home_id,
            )
        )

    best_gain, best_seg, best_name = 0, None, ""
    for seg_id, seg_efforts in by_segment.items():
        if len(seg_efforts) < 2:
            continue
        dated = sorted(seg_efforts, key=lambda e: (e.get("start_date") is None, e.get("start_date") or 0))
        gain = dated[0]["elapsed_time"] - min(e["elapsed_time"] for e in seg_efforts)
        if gain > best_gain:
            best_gain, best_seg = gain, seg_id
            best_name = seg_efforts[0].get("segment_name") or seg_id
    if best_gain > 30:
        records.append(
            HighlightRecord(
                category="most_improved",
                title="Leveled Up",
                description=f"Dropped {seconds_to_display(best_gain)} off your {best_name} PR over time.",
                stat_value=f"-{seconds_to_display(best_gain)}",
                stat_label=best_name,
                segment_id=best_seg,
            )
        )

    completed = len(by_segment)
    if completed >= 3:
        if completed >= CLUB_SEGMENT_TOTAL:
            title = "The Completionist"
        elif completed >= 5:
            title = "Well-Rounded"
        else:
            title = "Explorer"
        records.append(
            HighlightRecord(
                category="iron_rider",
                title=title,
                description=f"You've conquered {completed} of {CLUB_SEGMENT_TOTAL} club segments.",
                stat_value=f"{completed}/{CLUB_SEGMENT_TOTAL}",
                stat_label="Segments completed",
            )
        )
    return records


def _activity_highlights(activities: Sequence[Mapping[str, Any]]) -> List[HighlightRecord]:
    records: List[HighlightRecord] = []

    longest = max(activities, key=lambda a: a.get("distance_mi") or 0)
    if (longest.get("distance_mi") or 0) > 20:
        records.append(
            HighlightRecord(
                category="longest_ride",
                title="Road Warrior",
                description=(
                    f"Your longest ride: {longest['distance_mi']:.1f} miles on "
                    f"{_fmt_date(longest.get('start_date_local'))}"
                ),
                stat_value=f"{longest['distance_mi']:.1f} mi",
                stat_label="Longest single ride",
                activity_strava_id=longest.get("strava_activity_id"),
            )
        )

    climb = max(activities, key=lambda a: a.get("total_elevation_gain_ft") or 0)
    feet = climb.get("total_elevation_gain_ft") or 0
    if feet > 2000:
        records.append(
            HighlightRecord(
                category="biggest_climb",
                title="Iron Legs",
                description=f"{feet:,} ft of climbing on {_fmt_date(climb.get('start_date_local'))}",
                stat_value=f"{feet:,} ft",
                stat_label="Single-day elevation record",
                activity_strava_id=climb.get("strava_activity_id"),
            )
        )

    total_miles = sum(a.get("distance_mi") or 0 for a in activities)
    if total_miles > 100:
        records.append(
            HighlightRecord(
                category="total_distance",
                title="Mile Collector",
                description=f"{round(total_miles):,} total miles with the club.",
                stat_value=f"{round(total_miles):,} mi",
                stat_label="Total distance",
            )
        )
    return records


def _consistency_highlights(activities: Sequence[Mapping[str, Any]]) -> List[HighlightRecord]:
    records: List[HighlightRecord] = []
    starts = [a["start_date_local"] for a in activities if a.get("start_date_local")]
    if not starts:
        return records

    year, count = Counter(start.year for start in starts).most_common(1)[0]
    if count > 20:
        records.append(
            HighlightRecord(
                category="most_rides_year",
                title=f"{year} Was Your Year",
                description=f"{count} rides in {year}. That's roughly {count / 52:.1f} per week.",
                stat_value=str(count),
                stat_label=f"Rides in {year}",
            )
        )

    early = sum(1 for start in starts if start.hour < 7)
    late = sum(1 for start in starts if start.hour >= 18)
    if early > 10:
        records.append(
            HighlightRecord(
                category="early_bird",
                title="Dawn Patrol",
                description=f"{early} rides before 7am.",
                stat_value=str(early),
                stat_label="Pre-dawn rides",
            )
        )
    elif late > 10:
        records.append(
            HighlightRecord(
                category="night_owl",
                title="Night Moves",
                description=f"{late} rides starting after 6pm.",
                stat_value=str(late),
                stat_label="Evening rides",
            )
        )
    return records


def _first_ride(activities: Sequence[Mapping[str, Any]]) -> List[HighlightRecord]:
    dated = [a for a in activities if a.get("start_date_local")]
    if not dated:
        return []
    first = min(dated, key=lambda a: a["start_date_local"])
    when = _fmt_date(first["start_date_local"])
    return [
        HighlightRecord(
            category="first_ride",
            title="Day One",
            description=f'Your first ride: "{first.get("name") or "Ride"}" on {when}',
            stat_value=when,
            stat_label="First recorded ride",
            activity_strava_id=first.get("strava_activity_id"),
        )
    ]


def generate_highlights(
    activities: Sequence[Mapping[str, Any]], efforts: Sequence[Mapping[str, Any]]
) -> List[HighlightRecord]:
    records = _segment_highlights(efforts)
    if activities:
        records += _activity_highlights(activities)
        records += _consistency_highlights(activities)
        records += _first_ride(activities)
    return records[:MAX_HIGHLIGHTS]


__all__ = ["HighlightRecord", "MAX_HIGHLIGHTS", "generate_highlights"]

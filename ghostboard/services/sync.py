"""
Sync pipeline for one account.

Stages run strictly in order and publish progress after every unit of work:

1. token check (refresh when expired; a failed refresh aborts the run)
2. per-segment effort fetch, best effort per segment, effort upsert
3. activity history, page by page
4. crowns (KOM/QOM), replaced wholesale
5. account totals
6. leaderboard reconciliation and re-ranking
7. highlights, replaced wholesale
8. completion and audit log

Everything after stage 1 is best effort: a failed segment, page or write is
logged into that stage's ``errors`` and the run moves on.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..catalog import CLUB_SEGMENTS, ClubSegment, segment_by_slug
from ..core.config import (
    SYNC_ACHIEVEMENT_PAGE_CAP,
    SYNC_ACTIVITY_PAGE_CAP,
    SYNC_WINDOW_END,
    SYNC_WINDOW_START,
)
from ..core.database import session_scope
from ..core.errors import FatalAuthError, PersistenceError, StageFetchError
from ..core.time import day_start_epoch, parse_iso
from ..models import (
    Account,
    Achievement,
    Activity,
    Highlight,
    SegmentEffort,
    SyncLog,
    SyncStatus,
)
from ..strava_client import StravaClient, refresh_access_token
from . import progress
from .cache import SegmentCache
from .formatting import (
    format_month_year,
    meters_to_feet,
    meters_to_miles,
    mps_to_mph,
    seconds_to_display,
)
from .highlights import HighlightRecord, generate_highlights
from .leaderboard import apply_actions, owned_entries, recompute_segment_ranks, unverified_entries
from .progress import ProgressStep
from .reconcile import AccountIdentity, BestEffort, reconcile

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], StravaClient]
TokenRefresher = Callable[[str], Awaitable[Dict[str, Any]]]
HighlightGenerator = Callable[[Sequence[Dict[str, Any]], Sequence[Dict[str, Any]]], List[HighlightRecord]]


@dataclass
class StageResult:
    fetched: int = 0
    stored: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class LeaderboardResult:
    verified: int = 0
    updated: int = 0
    inserted: int = 0
    segments_reranked: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class SyncResult:
    account_id: int
    started: bool = True
    status: str = SyncStatus.SYNCING
    fatal_error: Optional[str] = None
    segment_efforts: StageResult = field(default_factory=StageResult)
    activities: StageResult = field(default_factory=StageResult)
    achievements: StageResult = field(default_factory=StageResult)
    highlights: StageResult = field(default_factory=StageResult)
    leaderboard: LeaderboardResult = field(default_factory=LeaderboardResult)
    account_stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ActivityTotals:
    rides: int = 0
    distance_mi: float = 0.0
    elevation_ft: int = 0
    moving_seconds: int = 0
    first_ride: Optional[datetime] = None
    last_ride: Optional[datetime] = None

    def add(self, distance_mi: float, elevation_ft: int, moving_seconds: int, ride_at: Optional[datetime]) -> None:
        self.rides += 1
        self.distance_mi += distance_mi
        self.elevation_ft += elevation_ft
        self.moving_seconds += moving_seconds
        if ride_at is not None:
            if self.first_ride is None or ride_at < self.first_ride:
                self.first_ride = ride_at
            if self.last_ride is None or ride_at > self.last_ride:
                self.last_ride = ride_at

    def progress_fields(self) -> Dict[str, Any]:
        return {
            "activities_found": self.rides,
            "total_distance": f"{round(self.distance_mi):,}",
            "total_elevation": f"{round(self.elevation_ft):,}",
            "total_hours": f"{round(self.moving_seconds / 3600):,}",
            "first_ride": format_month_year(self.first_ride, long=True),
            "last_ride": format_month_year(self.last_ride, long=True),
        }


def _round_or_none(value: Any) -> Optional[int]:
    return round(value) if value else None


class SyncOrchestrator:
    """Runs the pipeline. One instance can serve many accounts."""

    def __init__(
        self,
        *,
        bind: Optional[Engine] = None,
        client_factory: ClientFactory = StravaClient,
        token_refresher: TokenRefresher = refresh_access_token,
        highlight_generator: HighlightGenerator = generate_highlights,
        segments: Sequence[ClubSegment] = CLUB_SEGMENTS,
        window_start: date = SYNC_WINDOW_START,
        window_end: date = SYNC_WINDOW_END,
        activity_page_cap: int = SYNC_ACTIVITY_PAGE_CAP,
        achievement_page_cap: int = SYNC_ACHIEVEMENT_PAGE_CAP,
        cache: Optional[SegmentCache] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.bind = bind
        self.client_factory = client_factory
        self.token_refresher = token_refresher
        self.highlight_generator = highlight_generator
        self.segments = list(segments)
        self.window_start = window_start
        self.window_end = window_end
        self.activity_page_cap = activity_page_cap
        self.achievement_page_cap = achievement_page_cap
        self.cache = cache
        self.clock = clock

    # Entry points -----------------------------------------------------------

    def claim(self, account_id: int) -> bool:
        """Single-flight gate: True when this caller now owns the run."""

        with session_scope(self.bind) as session:
            return progress.claim_sync(session, account_id, len(self.segments))

    async def run(self, account_id: int) -> SyncResult:
        """Claim and run. A run already in flight is left alone."""

        if not self.claim(account_id):
            logger.info("Sync already running for account %s", account_id)
            return SyncResult(account_id=account_id, started=False, status=SyncStatus.SYNCING)
        return await self.run_claimed(account_id)

    async def run_claimed(self, account_id: int) -> SyncResult:
        """Run the pipeline for an account already moved to ``syncing``."""

        result = SyncResult(account_id=account_id)
        with session_scope(self.bind) as session:
            account = session.get(Account, account_id)
            if account is None:
                raise LookupError(f"Account {account_id} not found")
            logger.info("Starting sync for %s (strava %s)", account.name, account.strava_id)
            try:
                await self._execute(session, account, result)
            except FatalAuthError as exc:
                self._abort(session, account_id, result, str(exc))
            except Exception as exc:
                logger.exception("Sync for account %s crashed", account_id)
                self._abort(session, account_id, result, f"Unexpected error: {exc}")
                raise
            finally:
                self._release(session, account_id, result)
        return result

    async def _execute(self, session: Session, account: Account, result: SyncResult) -> None:
        token = await self._ensure_token(session, account)
        async with self.client_factory(token) as client:
            best_efforts = await self._sync_segment_efforts(session, client, account, result)
            totals = await self._sync_activities(session, client, account, result)
            crowns = await self._sync_achievements(session, client, account, result)
        self._finalize_stats(session, account, totals, crowns, result)
        self._reconcile(session, account, best_efforts, result)
        self._generate_highlights(session, account, result)
        self._complete(session, account, totals, result)

    # Stage 1 ----------------------------------------------------------------

    async def _ensure_token(self, session: Session, account: Account) -> str:
        if account.token_expires_at >= int(self.clock()):
            return account.access_token

        logger.info("Token expired for account %s, refreshing", account.id)
        tokens = await self.token_refresher(account.refresh_token)
        account.access_token = tokens["access_token"]
        account.refresh_token = tokens.get("refresh_token") or account.refresh_token
        account.token_expires_at = int(tokens.get("expires_at") or account.token_expires_at)
        access_token = account.access_token
        try:
            session.add(account)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Refreshed token for account %s could not be stored", account.id)
        return access_token

    # Stage 2 ----------------------------------------------------------------

    async def _sync_segment_efforts(
        self, session: Session, client: StravaClient, account: Account, result: SyncResult
    ) -> Dict[str, BestEffort]:
        stage = result.segment_efforts
        account_id = account.id
        total = len(self.segments)
        completed = 0
        found = 0
        best_by_segment: Dict[str, BestEffort] = {}

        for index, segment in enumerate(self.segments):
            if index:
                await client.pause()
            base = {
                "step": ProgressStep.SEGMENT_EFFORTS,
                "current_segment": segment.slug,
                "current_segment_name": segment.name,
                "segments_total": total,
            }
            self._publish(
                session,
                account_id,
                {**base, "segments_complete": completed, "efforts_found": found, "message": f"Scanning {segment.name}..."},
            )

            try:
                raw = await client.fetch_segment_efforts(segment.strava_id, self.window_start, self.window_end)
            except StageFetchError as exc:
                logger.warning("Segment %s (%s) failed: %s", segment.strava_id, segment.slug, exc)
                stage.errors.append(f"Segment {segment.strava_id} ({segment.slug}): {exc}")
                completed += 1
                self._publish(
                    session,
                    account_id,
                    {**base, "segments_complete": completed, "efforts_found": found, "message": f"Skipped {segment.name}"},
                )
                continue

            efforts = [e for e in raw if e.get("id") is not None and e.get("elapsed_time") is not None]
            stage.fetched += len(efforts)
            found += len(efforts)
            completed += 1
            if not efforts:
                self._publish(
                    session,
                    account_id,
                    {**base, "segments_complete": completed, "efforts_found": found, "message": f"No attempts on {segment.name}"},
                )
                continue

            # min() keeps the first of equal times, i.e. fetch order breaks ties.
            best = min(efforts, key=lambda e: e["elapsed_time"])
            best_at = parse_iso(best.get("start_date"))
            best_by_segment[segment.slug] = BestEffort(
                segment_id=segment.slug,
                elapsed_time=int(best["elapsed_time"]),
                strava_effort_id=int(best["id"]),
                start_date=best_at,
                average_watts=_round_or_none(best.get("average_watts")),
            )

            try:
                stage.stored += self._store_efforts(session, account_id, segment.slug, efforts)
            except PersistenceError as exc:
                logger.warning("%s", exc)
                stage.errors.append(str(exc))

            dates = [d for d in (parse_iso(e.get("start_date")) for e in efforts) if d is not None]
            best_display = seconds_to_display(best["elapsed_time"])
            self._publish(
                session,
                account_id,
                {
                    **base,
                    "segments_complete": completed,
                    "efforts_found": found,
                    "best_time_display": best_display,
                    "best_date": format_month_year(best_at),
                    "most_recent_date": format_month_year(max(dates)) if dates else None,
                    "message": f"{len(efforts)} attempts. Best: {best_display}",
                },
            )
            logger.info("%s: %d efforts, best %s", segment.slug, len(efforts), best_display)

        return best_by_segment

    def _store_efforts(
        self, session: Session, account_id: int, segment_id: str, efforts: Sequence[Dict[str, Any]]
    ) -> int:
        """Upsert by Strava effort id; re-running with the same data changes nothing."""

        ids = [int(e["id"]) for e in efforts]
        try:
            existing = {
                row.strava_effort_id: row
                for row in session.exec(
                    select(SegmentEffort).where(SegmentEffort.strava_effort_id.in_(ids))
                ).all()
            }
            for effort in efforts:
                values = {
                    "account_id": account_id,
                    "segment_id": segment_id,
                    "elapsed_time": int(effort["elapsed_time"]),
                    "moving_time": effort.get("moving_time"),
                    "start_date": parse_iso(effort.get("start_date")),
                    "average_watts": _round_or_none(effort.get("average_watts")),
                    "average_heartrate": _round_or_none(effort.get("average_heartrate")),
                    "max_heartrate": _round_or_none(effort.get("max_heartrate")),
                    "pr_rank": effort.get("pr_rank") or None,
                }
                row = existing.get(int(effort["id"]))
                if row is None:
                    row = SegmentEffort(strava_effort_id=int(effort["id"]), **values)
                    existing[row.strava_effort_id] = row
                else:
                    for key, value in values.items():
                        setattr(row, key, value)
                session.add(row)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Failed to store efforts for {segment_id}: {exc}") from exc
        return len(efforts)

    # Stage 3 ----------------------------------------------------------------

    async def _sync_activities(
        self, session: Session, client: StravaClient, account: Account, result: SyncResult
    ) -> ActivityTotals:
        stage = result.activities
        account_id = account.id
        totals = ActivityTotals()
        after = day_start_epoch(self.window_start)
        before = day_start_epoch(self.window_end + timedelta(days=1))

        self._publish(
            session,
            account_id,
            {
                "step": ProgressStep.ACTIVITIES,
                "segments_complete": len(self.segments),
                "segments_total": len(self.segments),
                "message": "Searching your ride history...",
            },
        )

        for page in range(1, self.activity_page_cap + 1):
            await client.pause()
            try:
                batch = await client.fetch_activities_page(page, after, before)
            except StageFetchError as exc:
                logger.warning("Activities page %d failed: %s", page, exc)
                stage.errors.append(f"Page {page}: {exc}")
                break

            stage.fetched += len(batch)
            if not batch:
                break

            rows = []
            for raw in batch:
                if raw.get("type") != "Ride" or raw.get("id") is None:
                    continue
                values = self._activity_values(raw)
                totals.add(
                    values["distance_mi"],
                    values["total_elevation_gain_ft"],
                    values["moving_time_seconds"],
                    values["start_date_local"] or values["start_date"],
                )
                rows.append(values)

            try:
                stage.stored += self._store_activities(session, account_id, rows)
            except PersistenceError as exc:
                logger.warning("%s", exc)
                stage.errors.append(str(exc))

            self._publish(
                session,
                account_id,
                {
                    "step": ProgressStep.ACTIVITIES,
                    "activities_page": page,
                    "activities_pages_total": self.activity_page_cap,
                    **totals.progress_fields(),
                    "message": f"{totals.rides:,} rides found",
                },
            )
            if len(batch) < client.page_size:
                break

        return totals

    @staticmethod
    def _activity_values(raw: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "strava_activity_id": int(raw["id"]),
            "name": raw.get("name") or "",
            "distance_mi": meters_to_miles(raw.get("distance") or 0),
            "moving_time_seconds": int(raw.get("moving_time") or 0),
            "elapsed_time_seconds": int(raw.get("elapsed_time") or 0),
            "total_elevation_gain_ft": meters_to_feet(raw.get("total_elevation_gain") or 0),
            "start_date": parse_iso(raw.get("start_date")),
            "start_date_local": parse_iso(raw.get("start_date_local")),
            "average_speed_mph": mps_to_mph(raw["average_speed"]) if raw.get("average_speed") else None,
            "max_speed_mph": mps_to_mph(raw["max_speed"]) if raw.get("max_speed") else None,
            "average_watts": _round_or_none(raw.get("average_watts")),
            "kilojoules": _round_or_none(raw.get("kilojoules")),
            "suffer_score": _round_or_none(raw.get("suffer_score")),
        }

    def _store_activities(self, session: Session, account_id: int, rows: Sequence[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        ids = [row["strava_activity_id"] for row in rows]
        try:
            existing = {
                activity.strava_activity_id: activity
                for activity in session.exec(
                    select(Activity).where(Activity.strava_activity_id.in_(ids))
                ).all()
            }
            for values in rows:
                activity = existing.get(values["strava_activity_id"])
                if activity is None:
                    activity = Activity(account_id=account_id, **values)
                    existing[activity.strava_activity_id] = activity
                else:
                    for key, value in values.items():
                        setattr(activity, key, value)
                session.add(activity)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Failed to store activities: {exc}") from exc
        return len(rows)

    # Stage 4 ----------------------------------------------------------------

    async def _sync_achievements(
        self, session: Session, client: StravaClient, account: Account, result: SyncResult
    ) -> Optional[int]:
        """Returns the crown count, or None when the fetch failed."""

        stage = result.achievements
        account_id = account.id
        records: List[Dict[str, Any]] = []
        try:
            for page in range(1, self.achievement_page_cap + 1):
                await client.pause()
                batch = await client.fetch_achievements_page(account.strava_id, page)
                stage.fetched += len(batch)
                if not batch:
                    break
                records.extend(self._achievement_values(raw) for raw in batch)
                if len(batch) < client.page_size:
                    break
        except StageFetchError as exc:
            logger.warning("Crown fetch failed: %s", exc)
            stage.errors.append(f"Fetch error: {exc}")
            return None

        try:
            session.execute(delete(Achievement).where(Achievement.account_id == account_id))
            session.add_all(Achievement(account_id=account_id, **values) for values in records)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to store crowns for account %s", account_id)
            stage.errors.append(f"Failed to store: {exc}")
            return len(records)
        stage.stored = len(records)
        logger.info("Found %d KOMs/QOMs", len(records))
        return len(records)

    @staticmethod
    def _achievement_values(raw: Dict[str, Any]) -> Dict[str, Any]:
        segment = raw.get("segment") or {}
        seconds = int(raw.get("elapsed_time") or raw.get("pr_elapsed_time") or 0)
        return {
            "strava_segment_id": int(segment.get("id") or raw.get("id") or 0),
            "segment_name": segment.get("name") or raw.get("name") or "Unknown Segment",
            "kind": "qom" if raw.get("kom_type") == "qom" else "kom",
            "time_seconds": seconds,
            "time_display": seconds_to_display(seconds),
        }

    # Stage 5 ----------------------------------------------------------------

    def _finalize_stats(
        self,
        session: Session,
        account: Account,
        totals: ActivityTotals,
        crowns: Optional[int],
        result: SyncResult,
    ) -> None:
        self._publish(
            session,
            account.id,
            {
                "step": ProgressStep.HIGHLIGHTS,
                "activities_found": totals.rides,
                "total_distance": f"{round(totals.distance_mi):,}",
                "message": "Generating your highlights...",
            },
        )
        account.total_rides = totals.rides
        account.total_distance_mi = round(totals.distance_mi, 2)
        account.total_elevation_ft = round(totals.elevation_ft)
        account.member_since = totals.first_ride.date() if totals.first_ride else None
        account.last_ride = totals.last_ride.date() if totals.last_ride else None
        if crowns is not None:
            account.crown_count = crowns
        stats = {
            "total_rides": account.total_rides,
            "total_distance_mi": account.total_distance_mi,
            "total_elevation_ft": account.total_elevation_ft,
            "member_since": account.member_since.isoformat() if account.member_since else None,
            "last_ride": account.last_ride.isoformat() if account.last_ride else None,
            "crown_count": account.crown_count,
        }
        try:
            session.add(account)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to store totals for account %s", account.id)
            return
        result.account_stats = stats

    # Stage 6 ----------------------------------------------------------------

    def _reconcile(
        self, session: Session, account: Account, best_efforts: Dict[str, BestEffort], result: SyncResult
    ) -> None:
        board = result.leaderboard
        if not best_efforts:
            return
        identity = AccountIdentity(
            account_id=account.id,
            name=account.name,
            first_name=account.first_name,
            last_name=account.last_name,
            avatar_url=account.avatar_url,
        )
        try:
            candidates = unverified_entries(session, best_efforts.keys(), account.id)
            owned = owned_entries(session, account.id)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to load leaderboard rows")
            board.errors.append(f"Failed to load leaderboard rows: {exc}")
            return

        actions = reconcile(identity, best_efforts, candidates, owned)
        applied = apply_actions(session, identity, actions)
        board.verified = applied.verified
        board.updated = applied.updated
        board.inserted = applied.inserted
        board.errors.extend(applied.errors)

        for segment_id in applied.touched_segments:
            try:
                recompute_segment_ranks(session, segment_id)
                board.segments_reranked += 1
            except PersistenceError as exc:
                logger.warning("%s", exc)
                board.errors.append(str(exc))
        if self.cache is not None:
            self.cache.invalidate()
        logger.info(
            "Leaderboard: %d verified, %d updated, %d new",
            board.verified,
            board.updated,
            board.inserted,
        )

    # Stage 7 ----------------------------------------------------------------

    def _generate_highlights(self, session: Session, account: Account, result: SyncResult) -> None:
        stage = result.highlights
        account_id = account.id
        try:
            activities = [
                {
                    "strava_activity_id": a.strava_activity_id,
                    "name": a.name,
                    "distance_mi": a.distance_mi,
                    "moving_time_seconds": a.moving_time_seconds,
                    "total_elevation_gain_ft": a.total_elevation_gain_ft,
                    "start_date_local": a.start_date_local or a.start_date,
                    "average_speed_mph": a.average_speed_mph,
                    "average_watts": a.average_watts,
                }
                for a in session.exec(select(Activity).where(Activity.account_id == account_id)).all()
            ]
            efforts = []
            for e in session.exec(select(SegmentEffort).where(SegmentEffort.account_id == account_id)).all():
                club_segment = segment_by_slug(e.segment_id)
                efforts.append(
                    {
                        "segment_id": e.segment_id,
                        "segment_name": club_segment.name if club_segment else e.segment_id,
                        "elapsed_time": e.elapsed_time,
                        "start_date": e.start_date,
                        "pr_rank": e.pr_rank,
                    }
                )
            records = self.highlight_generator(activities, efforts)
            stage.fetched = len(records)

            session.execute(delete(Highlight).where(Highlight.account_id == account_id))
            session.add_all(
                Highlight(account_id=account_id, position=position, **record.to_dict())
                for position, record in enumerate(records)
            )
            session.commit()
            stage.stored = len(records)
        except Exception as exc:
            session.rollback()
            logger.exception("Highlight generation failed for account %s", account_id)
            stage.errors.append(f"Highlights failed: {exc}")

    # Stage 8 ----------------------------------------------------------------

    def _complete(self, session: Session, account: Account, totals: ActivityTotals, result: SyncResult) -> None:
        account_id = account.id
        snapshot = {
            "segments_complete": len(self.segments),
            "segments_total": len(self.segments),
            "efforts_found": result.segment_efforts.fetched,
            **totals.progress_fields(),
        }
        result.status = SyncStatus.COMPLETE
        try:
            progress.mark_complete(session, account_id, snapshot)
        except PersistenceError as exc:
            logger.error("%s", exc)
            result.status = SyncStatus.ERROR
            result.fatal_error = str(exc)
            try:
                progress.mark_error(session, account_id, str(exc), snapshot)
            except PersistenceError as fallback_exc:
                logger.error("%s", fallback_exc)
        audit_status = "completed" if result.status == SyncStatus.COMPLETE else "failed"
        self._audit(session, account_id, audit_status, result)
        if self.cache is not None:
            self.cache.invalidate()
        logger.info("Sync complete for account %s", account_id)

    def _abort(self, session: Session, account_id: int, result: SyncResult, message: str) -> None:
        logger.error("Sync aborted for account %s: %s", account_id, message)
        session.rollback()
        result.status = SyncStatus.ERROR
        result.fatal_error = message
        try:
            progress.mark_error(session, account_id, message)
        except PersistenceError as exc:
            logger.error("%s", exc)
        self._audit(session, account_id, "failed", result)

    def _release(self, session: Session, account_id: int, result: SyncResult) -> None:
        """Last resort: a run must never leave the account stuck in ``syncing``."""

        message = result.fatal_error or "Sync ended without recording a final status"
        try:
            if progress.release(session, account_id, message):
                logger.warning("Account %s was still syncing at the end of the run; marked as error", account_id)
                result.status = SyncStatus.ERROR
        except PersistenceError as exc:
            logger.error("%s", exc)

    # Helpers ----------------------------------------------------------------

    def _publish(self, session: Session, account_id: int, snapshot: Dict[str, Any]) -> None:
        try:
            progress.publish(session, account_id, snapshot)
        except PersistenceError as exc:
            logger.warning("%s", exc)

    def _audit(self, session: Session, account_id: int, status: str, result: SyncResult) -> None:
        try:
            session.add(SyncLog(account_id=account_id, status=status, details=result.to_dict()))
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to write sync log for account %s", account_id)


__all__ = [
    "ActivityTotals",
    "LeaderboardResult",
    "StageResult",
    "SyncOrchestrator",
    "SyncResult",
]

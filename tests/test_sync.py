"""Tests for the sync pipeline against a fake Strava."""

import asyncio
import time

import pytest
from sqlmodel import Session, select

from conftest import add_ghost, effort, make_account, ride
from ghostboard.catalog import CLUB_SEGMENTS
from ghostboard.core.errors import FatalAuthError, PersistenceError
from ghostboard.models import (
    Account,
    Achievement,
    Activity,
    EntryStatus,
    Highlight,
    LeaderboardEntry,
    SegmentEffort,
    SyncLog,
    SyncStatus,
)
from ghostboard.services import progress as progress_module
from ghostboard.services.cache import SegmentCache
from ghostboard.services.sync import SyncOrchestrator

HAWK_HILL = 229781
RADIO_ROAD = 241885
OLD_LA_HONDA = 8109834


def orchestrator_for(db_engine, fake_strava, **kwargs):
    return SyncOrchestrator(bind=db_engine, client_factory=fake_strava.client_factory, **kwargs)


def seed_strava(fake):
    fake.efforts[HAWK_HILL] = [
        effort(1, 390, "2014-03-01T15:00:00Z"),
        effort(2, 378, "2016-05-01T15:00:00Z", average_watts=301.6),
        effort(3, 378, "2017-05-01T15:00:00Z"),
    ]
    fake.efforts[RADIO_ROAD] = [effort(10, 610, "2015-01-01T15:00:00Z")]
    fake.activity_pages[1] = [
        ride(100, "2012-04-01T07:00:00Z"),
        ride(101, "2018-09-01T17:30:00Z", distance_m=100000, climb_m=1200),
        ride(102, "2015-01-01T10:00:00Z", kind="Run"),
    ]
    fake.koms = [
        {"segment": {"id": 77, "name": "Some Hill"}, "elapsed_time": 125, "kom_type": "kom"},
        {"segment": {"id": 78, "name": "Another"}, "elapsed_time": 200, "kom_type": "qom"},
    ]


def entries(session, segment_id):
    return session.exec(
        select(LeaderboardEntry).where(LeaderboardEntry.segment_id == segment_id).order_by(LeaderboardEntry.rank)
    ).all()


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_full_run(self, db_engine, session, fake_strava):
        account = make_account(session)
        ghost = add_ghost(session, "hawk-hill", "john s.", 380, rank=2)
        add_ghost(session, "hawk-hill", "Fast Freddie", 350, rank=1)
        seed_strava(fake_strava)

        result = await orchestrator_for(db_engine, fake_strava).run(account.id)

        assert result.started
        assert result.status == SyncStatus.COMPLETE
        assert result.fatal_error is None
        assert result.segment_efforts.fetched == 4
        assert result.segment_efforts.stored == 4
        assert result.segment_efforts.errors == []
        assert result.activities.stored == 2
        assert result.achievements.stored == 2
        assert result.leaderboard.verified == 1
        assert result.leaderboard.inserted == 1
        assert result.account_stats["total_rides"] == 2
        assert result.account_stats["member_since"] == "2012-04-01"
        assert result.account_stats["crown_count"] == 2

        with Session(db_engine) as check:
            stored = check.get(Account, account.id)
            assert stored.sync_status == SyncStatus.COMPLETE
            assert stored.sync_progress["step"] == "complete"
            assert stored.last_sync_at is not None
            assert stored.total_elevation_ft == round(500 * 3.28084) + round(1200 * 3.28084)

            verified = check.get(LeaderboardEntry, ghost.id)
            assert verified.status == EntryStatus.VERIFIED
            assert verified.account_id == account.id
            assert verified.time_seconds == 378
            assert verified.time_display == "6:18"
            # Equal best times: the first one fetched wins.
            assert verified.strava_effort_id == 2
            assert verified.power_watts == 302

            ranked = entries(check, "hawk-hill")
            assert [e.rider_name for e in ranked] == ["Fast Freddie", "john s."]
            assert [e.rank for e in ranked] == [1, 2]
            assert ranked[1].gap_seconds == 28

            radio = entries(check, "radio-road")
            assert len(radio) == 1
            assert radio[0].rider_name == "John Smith"
            assert radio[0].rank == 1
            assert radio[0].gap_seconds is None

            logs = check.exec(select(SyncLog)).all()
            assert [log.status for log in logs] == ["completed"]
            assert logs[0].details["leaderboard"]["verified"] == 1
            assert check.exec(select(Highlight)).all()

    @pytest.mark.asyncio
    async def test_run_invalidates_cache(self, db_engine, session, fake_strava):
        account = make_account(session)
        seed_strava(fake_strava)
        cache = SegmentCache(ttl_seconds=3600)
        cache.get_or_load(lambda: ["stale"])

        await orchestrator_for(db_engine, fake_strava, cache=cache).run(account.id)

        assert cache.get_or_load(lambda: ["fresh"]) == ["fresh"]


class TestPartialFailure:
    @pytest.mark.asyncio
    async def test_failed_segment_does_not_stop_the_run(self, db_engine, session, fake_strava, monkeypatch):
        account = make_account(session)
        seed_strava(fake_strava)
        fake_strava.failing_segments.add(OLD_LA_HONDA)

        snapshots = []
        real_publish = progress_module.publish

        def recording_publish(session, account_id, snapshot):
            snapshots.append(dict(snapshot))
            real_publish(session, account_id, snapshot)

        monkeypatch.setattr(progress_module, "publish", recording_publish)

        result = await orchestrator_for(db_engine, fake_strava).run(account.id)

        assert result.status == SyncStatus.COMPLETE
        assert len(result.segment_efforts.errors) == 1
        assert str(OLD_LA_HONDA) in result.segment_efforts.errors[0]
        assert fake_strava.requested_segments() == [seg.strava_id for seg in CLUB_SEGMENTS]

        effort_snapshots = [s for s in snapshots if s["step"] == "segment_efforts"]
        counts = [s["segments_complete"] for s in effort_snapshots]
        assert counts == sorted(counts)
        assert counts[-1] == len(CLUB_SEGMENTS)

    @pytest.mark.asyncio
    async def test_activity_page_error_keeps_earlier_pages(self, db_engine, session, fake_strava):
        account = make_account(session)
        seed_strava(fake_strava)
        fake_strava.activity_pages[1] = [ride(200 + i, "2013-01-01T08:00:00Z") for i in range(100)]
        fake_strava.failing_activity_pages.add(2)

        result = await orchestrator_for(db_engine, fake_strava).run(account.id)

        assert result.status == SyncStatus.COMPLETE
        assert result.activities.stored == 100
        assert len(result.activities.errors) == 1
        assert result.activities.errors[0].startswith("Page 2")
        assert result.account_stats["total_rides"] == 100

    @pytest.mark.asyncio
    async def test_crown_failure_keeps_previous_crowns(self, db_engine, session, fake_strava):
        account = make_account(session, crown_count=4)
        session.add(Achievement(account_id=account.id, strava_segment_id=1, segment_name="Old"))
        session.commit()
        seed_strava(fake_strava)
        fake_strava.koms_fail = True

        result = await orchestrator_for(db_engine, fake_strava).run(account.id)

        assert result.status == SyncStatus.COMPLETE
        assert len(result.achievements.errors) == 1
        with Session(db_engine) as check:
            assert len(check.exec(select(Achievement)).all()) == 1
            assert check.get(Account, account.id).crown_count == 4

    @pytest.mark.asyncio
    async def test_highlight_failure_is_not_fatal(self, db_engine, session, fake_strava):
        account = make_account(session)
        seed_strava(fake_strava)

        def broken(activities, efforts):
            raise ValueError("no highlights today")

        result = await orchestrator_for(db_engine, fake_strava, highlight_generator=broken).run(account.id)

        assert result.status == SyncStatus.COMPLETE
        assert len(result.highlights.errors) == 1
        assert result.leaderboard.inserted == 2


class TestReplaceSemantics:
    @pytest.mark.asyncio
    async def test_crowns_and_highlights_are_replaced(self, db_engine, session, fake_strava):
        account = make_account(session)
        session.add(Achievement(account_id=account.id, strava_segment_id=1, segment_name="Stale"))
        session.add(
            Highlight(
                account_id=account.id,
                category="custom",
                title="Stale",
                description="old",
                stat_value="1",
                stat_label="old",
            )
        )
        session.commit()
        seed_strava(fake_strava)

        await orchestrator_for(db_engine, fake_strava).run(account.id)

        with Session(db_engine) as check:
            crowns = check.exec(select(Achievement)).all()
            assert sorted(c.segment_name for c in crowns) == ["Another", "Some Hill"]
            assert {c.kind for c in crowns} == {"kom", "qom"}
            titles = [h.title for h in check.exec(select(Highlight)).all()]
            assert "Stale" not in titles
            assert "Day One" in titles


class TestIdempotency:
    @pytest.mark.asyncio
    async def test_second_run_creates_no_duplicates(self, db_engine, session, fake_strava):
        account = make_account(session)
        add_ghost(session, "hawk-hill", "john s.", 380)
        seed_strava(fake_strava)
        orchestrator = orchestrator_for(db_engine, fake_strava)

        await orchestrator.run(account.id)
        with Session(db_engine) as check:
            efforts_before = [(e.strava_effort_id, e.elapsed_time) for e in check.exec(select(SegmentEffort)).all()]
            board_before = [(e.id, e.rank, e.time_seconds) for e in check.exec(select(LeaderboardEntry)).all()]

        second = await orchestrator.run(account.id)
        assert second.started

        with Session(db_engine) as check:
            efforts_after = [(e.strava_effort_id, e.elapsed_time) for e in check.exec(select(SegmentEffort)).all()]
            board_after = [(e.id, e.rank, e.time_seconds) for e in check.exec(select(LeaderboardEntry)).all()]
            assert len(check.exec(select(Activity)).all()) == 2
        assert sorted(efforts_after) == sorted(efforts_before)
        assert sorted(board_after) == sorted(board_before)
        assert second.leaderboard.inserted == 0
        assert second.leaderboard.verified == 2


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_already_syncing_is_a_no_op(self, db_engine, session, fake_strava):
        account = make_account(session, sync_status=SyncStatus.SYNCING)
        seed_strava(fake_strava)

        result = await orchestrator_for(db_engine, fake_strava).run(account.id)

        assert result.started is False
        assert result.status == SyncStatus.SYNCING
        assert fake_strava.requests == []

    def test_claim_is_exclusive(self, db_engine, session, fake_strava):
        account = make_account(session)
        orchestrator = orchestrator_for(db_engine, fake_strava)
        assert orchestrator.claim(account.id) is True
        assert orchestrator.claim(account.id) is False


class TestFatalAuth:
    @pytest.mark.asyncio
    async def test_refresh_failure_aborts(self, db_engine, session, fake_strava):
        account = make_account(session, token_expires_at=int(time.time()) - 10)
        seed_strava(fake_strava)

        async def failing_refresh(refresh_token):
            raise FatalAuthError("Token refresh failed: 401")

        result = await orchestrator_for(db_engine, fake_strava, token_refresher=failing_refresh).run(account.id)

        assert result.status == SyncStatus.ERROR
        assert "Token refresh failed" in result.fatal_error
        assert fake_strava.requests == []
        with Session(db_engine) as check:
            stored = check.get(Account, account.id)
            assert stored.sync_status == SyncStatus.ERROR
            assert "Token refresh failed" in stored.last_sync_error
            assert stored.sync_progress["error"] == stored.last_sync_error
            assert [log.status for log in check.exec(select(SyncLog)).all()] == ["failed"]

    @pytest.mark.asyncio
    async def test_expired_token_is_refreshed_and_stored(self, db_engine, session, fake_strava):
        account = make_account(session, token_expires_at=int(time.time()) - 10)
        seed_strava(fake_strava)

        async def refresh(refresh_token):
            return {"access_token": "fresh", "refresh_token": "fresh-r", "expires_at": int(time.time()) + 3600}

        result = await orchestrator_for(db_engine, fake_strava, token_refresher=refresh).run(account.id)

        assert result.status == SyncStatus.COMPLETE
        assert fake_strava.requests[0].headers["Authorization"] == "Bearer fresh"
        with Session(db_engine) as check:
            assert check.get(Account, account.id).refresh_token == "fresh-r"


class TestOwnership:
    @pytest.mark.asyncio
    async def test_row_claimed_by_another_account_is_left_alone(self, db_engine, session, fake_strava):
        holder = make_account(session, strava_id=9002, name="John Smith", access_token="holder-token")
        syncer = make_account(session)
        claimed = add_ghost(
            session, "hawk-hill", "John Smith", 380, status=EntryStatus.CLAIMED, account_id=holder.id
        )
        fake_strava.efforts[HAWK_HILL] = [effort(1, 378)]

        result = await orchestrator_for(db_engine, fake_strava).run(syncer.id)

        assert result.leaderboard.verified == 0
        assert result.leaderboard.inserted == 1
        with Session(db_engine) as check:
            kept = check.get(LeaderboardEntry, claimed.id)
            assert kept.status == EntryStatus.CLAIMED
            assert kept.account_id == holder.id
            assert kept.time_seconds == 380
            mine = check.exec(
                select(LeaderboardEntry).where(LeaderboardEntry.account_id == syncer.id)
            ).all()
            assert [(row.status, row.time_seconds) for row in mine] == [(EntryStatus.VERIFIED, 378)]


class TestFinalStatusFailures:
    @pytest.mark.asyncio
    async def test_failed_completion_write_still_frees_the_account(
        self, db_engine, session, fake_strava, monkeypatch
    ):
        account = make_account(session)
        seed_strava(fake_strava)

        def broken_complete(session, account_id, snapshot=None):
            raise PersistenceError("disk full")

        monkeypatch.setattr(progress_module, "mark_complete", broken_complete)
        orchestrator = orchestrator_for(db_engine, fake_strava)

        result = await orchestrator.run(account.id)

        assert result.status == SyncStatus.ERROR
        assert "disk full" in result.fatal_error
        with Session(db_engine) as check:
            stored = check.get(Account, account.id)
            assert stored.sync_status == SyncStatus.ERROR
            assert "disk full" in stored.last_sync_error
            assert [log.status for log in check.exec(select(SyncLog)).all()] == ["failed"]
        assert orchestrator.claim(account.id) is True

    @pytest.mark.asyncio
    async def test_failed_error_write_still_frees_the_account(
        self, db_engine, session, fake_strava, monkeypatch
    ):
        account = make_account(session, token_expires_at=int(time.time()) - 10)

        async def failing_refresh(refresh_token):
            raise FatalAuthError("Token refresh failed: 401")

        def broken_mark_error(session, account_id, message, snapshot=None):
            raise PersistenceError("disk full")

        monkeypatch.setattr(progress_module, "mark_error", broken_mark_error)
        orchestrator = orchestrator_for(db_engine, fake_strava, token_refresher=failing_refresh)

        result = await orchestrator.run(account.id)

        assert result.status == SyncStatus.ERROR
        with Session(db_engine) as check:
            stored = check.get(Account, account.id)
            assert stored.sync_status == SyncStatus.ERROR
            assert "Token refresh failed" in stored.last_sync_error
        assert orchestrator.claim(account.id) is True

    @pytest.mark.asyncio
    async def test_successful_run_is_not_released(self, db_engine, session, fake_strava):
        account = make_account(session)
        seed_strava(fake_strava)

        result = await orchestrator_for(db_engine, fake_strava).run(account.id)

        assert result.status == SyncStatus.COMPLETE
        with Session(db_engine) as check:
            assert check.get(Account, account.id).sync_status == SyncStatus.COMPLETE


class TestConcurrentAccounts:
    @pytest.mark.asyncio
    async def test_overlapping_syncs_leave_dense_ranks(self, db_engine, session, fake_strava):
        john = make_account(session)
        ann = make_account(
            session, strava_id=9002, name="Ann Lee", first_name="Ann", last_name="Lee", access_token="ann-token"
        )
        add_ghost(session, "hawk-hill", "Fast Freddie", 350, rank=1)
        john_ghost = add_ghost(session, "hawk-hill", "john s.", 380, rank=2)
        ann_ghost = add_ghost(session, "hawk-hill", "Ann L.", 440, rank=3)
        add_ghost(session, "hawk-hill", "Slow Sam", 500, rank=4)

        fake_strava.courtesy_delay = 0.001
        fake_strava.efforts_by_token["access-token"] = {
            HAWK_HILL: [effort(1, 378)],
            RADIO_ROAD: [effort(2, 600)],
        }
        fake_strava.efforts_by_token["ann-token"] = {
            HAWK_HILL: [effort(11, 415)],
            RADIO_ROAD: [effort(12, 590)],
        }
        orchestrator = orchestrator_for(db_engine, fake_strava)

        results = await asyncio.gather(orchestrator.run(john.id), orchestrator.run(ann.id))

        assert [r.status for r in results] == [SyncStatus.COMPLETE, SyncStatus.COMPLETE]
        with Session(db_engine) as check:
            for segment_id in ("hawk-hill", "radio-road"):
                rows = entries(check, segment_id)
                assert [row.rank for row in rows] == list(range(1, len(rows) + 1))
                assert [row.time_seconds for row in rows] == sorted(row.time_seconds for row in rows)
                assert rows[0].gap_seconds is None
                assert all(row.gap_seconds == row.time_seconds - rows[0].time_seconds for row in rows[1:])

            hawk = entries(check, "hawk-hill")
            assert [row.rider_name for row in hawk] == ["Fast Freddie", "john s.", "Ann L.", "Slow Sam"]
            assert check.get(LeaderboardEntry, john_ghost.id).account_id == john.id
            assert check.get(LeaderboardEntry, ann_ghost.id).account_id == ann.id
            assert [row.rider_name for row in entries(check, "radio-road")] == ["Ann Lee", "John Smith"]

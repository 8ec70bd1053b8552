"""
Shared fixtures.

Environment variables are set before anything from ``ghostboard`` is
imported, since its settings are read at import time.
"""

import os

os.environ.setdefault("STRAVA_CLIENT_ID", "12345")
os.environ.setdefault("STRAVA_CLIENT_SECRET", "test-secret")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_TOKEN"] = "test-admin"
os.environ["SYNC_COURTESY_DELAY_MS"] = "0"

import asyncio
import time
from typing import Any, Dict, List, Optional, Set

import httpx
import pytest
from sqlmodel import Session, SQLModel

from ghostboard import models  # noqa: F401
from ghostboard.catalog import ensure_segments
from ghostboard.core.database import make_engine
from ghostboard.models import Account, EntryStatus, LeaderboardEntry
from ghostboard.services.formatting import seconds_to_display
from ghostboard.strava_client import StravaClient


@pytest.fixture
def db_engine(tmp_path):
    """A fresh SQLite database per test, with the club segments seeded."""
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        ensure_segments(session)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session


def make_account(session: Session, **overrides: Any) -> Account:
    values: Dict[str, Any] = {
        "strava_id": 9001,
        "name": "John Smith",
        "first_name": "John",
        "last_name": "Smith",
        "avatar_url": "https://example.com/john.jpg",
        "access_token": "access-token",
        "refresh_token": "refresh-token",
        "token_expires_at": int(time.time()) + 3600,
    }
    values.update(overrides)
    account = Account(**values)
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


def add_ghost(
    session: Session,
    segment_id: str,
    rider_name: Optional[str],
    time_seconds: int,
    status: str = EntryStatus.GHOST,
    account_id: Optional[int] = None,
    rank: Optional[int] = None,
) -> LeaderboardEntry:
    entry = LeaderboardEntry(
        segment_id=segment_id,
        rider_name=rider_name,
        time_seconds=time_seconds,
        time_display=seconds_to_display(time_seconds),
        status=status,
        account_id=account_id,
        rank=rank,
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


@pytest.fixture
def account_factory(session):
    def factory(**overrides: Any) -> Account:
        return make_account(session, **overrides)

    return factory


@pytest.fixture
def ghost_factory(session):
    def factory(segment_id: str, rider_name: Optional[str], time_seconds: int, **kwargs: Any) -> LeaderboardEntry:
        return add_ghost(session, segment_id, rider_name, time_seconds, **kwargs)

    return factory


def effort(effort_id: int, elapsed: int, start: str = "2015-06-01T14:00:00Z", **extra: Any) -> Dict[str, Any]:
    return {"id": effort_id, "elapsed_time": elapsed, "moving_time": elapsed, "start_date": start, **extra}


def ride(activity_id: int, start: str, distance_m: float = 40000, climb_m: float = 500, kind: str = "Ride") -> Dict[str, Any]:
    return {
        "id": activity_id,
        "type": kind,
        "name": f"Ride {activity_id}",
        "distance": distance_m,
        "moving_time": 5400,
        "elapsed_time": 6000,
        "total_elevation_gain": climb_m,
        "start_date": start,
        "start_date_local": start,
        "average_speed": 7.5,
        "max_speed": 15.0,
    }


class FakeStrava:
    """In-memory Strava v3 served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.efforts: Dict[int, List[Dict[str, Any]]] = {}
        # Per access token, for runs where two accounts sync at once.
        self.efforts_by_token: Dict[str, Dict[int, List[Dict[str, Any]]]] = {}
        self.failing_segments: Set[int] = set()
        self.activity_pages: Dict[int, List[Dict[str, Any]]] = {}
        self.failing_activity_pages: Set[int] = set()
        self.koms: List[Dict[str, Any]] = []
        self.koms_fail = False
        self.requests: List[httpx.Request] = []
        self.sleeps: List[float] = []
        self.courtesy_delay = 0.0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params
        page = int(params.get("page", "1"))
        per_page = int(params.get("per_page", "100"))

        if path.endswith("/segment_efforts"):
            segment_id = int(params["segment_id"])
            if segment_id in self.failing_segments:
                return httpx.Response(500, json={"message": "boom"})
            token = request.headers.get("Authorization", "").replace("Bearer ", "", 1)
            data = self.efforts_by_token.get(token, self.efforts).get(segment_id, [])
            return httpx.Response(200, json=data[(page - 1) * per_page : page * per_page])
        if path.endswith("/athlete/activities"):
            if page in self.failing_activity_pages:
                return httpx.Response(503, json={"message": "unavailable"})
            return httpx.Response(200, json=self.activity_pages.get(page, []))
        if path.endswith("/koms"):
            if self.koms_fail:
                return httpx.Response(500, json={"message": "boom"})
            return httpx.Response(200, json=self.koms[(page - 1) * per_page : page * per_page])
        if path.endswith("/athlete"):
            return httpx.Response(200, json={"id": 9001, "firstname": "John", "lastname": "Smith"})
        return httpx.Response(404, json={"message": "not found"})

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        await asyncio.sleep(0)

    def client_factory(self, token: str) -> StravaClient:
        return StravaClient(
            token,
            transport=httpx.MockTransport(self.handler),
            sleep=self.sleep,
            courtesy_delay=self.courtesy_delay,
        )

    def requested_segments(self) -> List[int]:
        return [
            int(r.url.params["segment_id"]) for r in self.requests if r.url.path.endswith("/segment_efforts")
        ]


@pytest.fixture
def fake_strava():
    return FakeStrava()

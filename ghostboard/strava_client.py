"""
Strava API Client
OAuth authentication and API communication with Strava.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from .core.config import (
    STRAVA_CLIENT_ID,
    STRAVA_CLIENT_SECRET,
    STRAVA_MAX_BACKOFF_SECONDS,
    STRAVA_MAX_RETRIES,
    STRAVA_REDIRECT_URI,
    STRAVA_TIMEOUT_SECONDS,
    SYNC_COURTESY_DELAY_MS,
    SYNC_EFFORT_PAGE_CAP,
    SYNC_PAGE_SIZE,
)
from .core.errors import FatalAuthError, RateLimitError, StageFetchError

logger = logging.getLogger(__name__)

AUTH_BASE = "https://www.strava.com/oauth/authorize"
TOKEN_URL = "https://www.strava.com/oauth/token"
API_BASE = "https://www.strava.com/api/v3"

SCOPES = "read,activity:read_all"

# Wait used when a 429 carries no usable reset hint (Strava's 15 minute window).
DEFAULT_RATE_LIMIT_WAIT = 15 * 60

# Reset headers below this value are a delay in seconds rather than an epoch.
_EPOCH_THRESHOLD = 10**9

Sleep = Callable[[float], Awaitable[Any]]


def auth_url(state: str = "state1") -> str:
    """Generate Strava OAuth authorization URL."""
    query = urlencode(
        {
            "client_id": STRAVA_CLIENT_ID,
            "redirect_uri": STRAVA_REDIRECT_URI,
            "response_type": "code",
            "approval_prompt": "auto",
            "scope": SCOPES,
            "state": state,
        }
    )
    return f"{AUTH_BASE}?{query}"


async def _post_token(data: Dict[str, Any], transport: Optional[httpx.AsyncBaseTransport]) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=STRAVA_TIMEOUT_SECONDS, transport=transport) as client:
        r = await client.post(
            TOKEN_URL,
            data={
                "client_id": STRAVA_CLIENT_ID,
                "client_secret": STRAVA_CLIENT_SECRET,
                **data,
            },
        )
        r.raise_for_status()
        return r.json()


async def exchange_code_for_token(
    code: str, *, transport: Optional[httpx.AsyncBaseTransport] = None
) -> Dict[str, Any]:
    """Exchange authorization code for access token (and the athlete summary)."""
    return await _post_token({"code": code, "grant_type": "authorization_code"}, transport)


async def refresh_access_token(
    refresh_token: str, *, transport: Optional[httpx.AsyncBaseTransport] = None
) -> Dict[str, Any]:
    """Refresh expired access token. Any failure is fatal to a sync run."""
    try:
        payload = await _post_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}, transport
        )
    except (httpx.HTTPError, ValueError) as exc:
        raise FatalAuthError(f"Token refresh failed: {exc}") from exc
    if not payload.get("access_token"):
        raise FatalAuthError("Token refresh failed: no access_token in response")
    return payload


class StravaClient:
    """
    Authenticated reader for the Strava v3 API.

    Every GET goes through :meth:`_get`, which waits out 429 responses until
    the advertised reset and retries the same request. ``sleep`` and ``clock``
    are injectable so tests never actually wait.
    """

    def __init__(
        self,
        access_token: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.time,
        timeout: float = STRAVA_TIMEOUT_SECONDS,
        max_retries: int = STRAVA_MAX_RETRIES,
        max_backoff: float = STRAVA_MAX_BACKOFF_SECONDS,
        page_size: int = SYNC_PAGE_SIZE,
        effort_page_cap: int = SYNC_EFFORT_PAGE_CAP,
        courtesy_delay: float = SYNC_COURTESY_DELAY_MS / 1000,
    ):
        self._client = httpx.AsyncClient(
            base_url=API_BASE,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )
        self._sleep = sleep
        self._clock = clock
        self.max_retries = max_retries
        self.max_backoff = max_backoff
        self.page_size = page_size
        self.effort_page_cap = effort_page_cap
        self.courtesy_delay = courtesy_delay

    async def __aenter__(self) -> "StravaClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def pause(self) -> None:
        """Courtesy delay between consecutive fetches."""
        if self.courtesy_delay > 0:
            await self._sleep(self.courtesy_delay)

    def _backoff_seconds(self, response: httpx.Response) -> float:
        wait: Optional[float] = None
        reset = response.headers.get("X-RateLimit-Reset")
        if reset:
            try:
                value = float(reset)
            except ValueError:
                value = None
            if value is not None:
                wait = value - self._clock() if value >= _EPOCH_THRESHOLD else value
        if wait is None:
            retry_after = response.headers.get("Retry-After")
            if retry_after:
                try:
                    wait = float(retry_after)
                except ValueError:
                    wait = None
        if wait is None:
            wait = DEFAULT_RATE_LIMIT_WAIT
        return max(0.0, min(wait, self.max_backoff))

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        attempt = 0
        while True:
            try:
                response = await self._client.get(path, params=params or {})
            except httpx.HTTPError as exc:
                raise StageFetchError(f"Strava request failed: {path}: {exc}") from exc

            if response.status_code == 429:
                wait = self._backoff_seconds(response)
                if attempt >= self.max_retries:
                    raise RateLimitError(
                        f"Rate limited on {path} after {attempt} retries",
                        retry_after=wait,
                        reset_at=self._clock() + wait,
                    )
                attempt += 1
                logger.warning(
                    "Strava rate limit on %s; waiting %.0fs (retry %d/%d)",
                    path,
                    wait,
                    attempt,
                    self.max_retries,
                )
                await self._sleep(wait)
                continue

            if not response.is_success:
                raise StageFetchError(
                    f"Strava API error: {response.status_code} {path}",
                    status_code=response.status_code,
                )
            try:
                return response.json()
            except ValueError as exc:
                raise StageFetchError(f"Strava returned invalid JSON: {path}") from exc

    async def get_athlete(self) -> Dict[str, Any]:
        return await self._get("/athlete")

    async def fetch_segment_efforts(
        self, segment_strava_id: int, start: date, end: date
    ) -> List[Dict[str, Any]]:
        """Every effort on one segment inside the window, following pages up to the cap."""

        efforts: List[Dict[str, Any]] = []
        for page in range(1, self.effort_page_cap + 1):
            if page > 1:
                await self.pause()
            batch = await self._get(
                "/segment_efforts",
                {
                    "segment_id": segment_strava_id,
                    "start_date_local": f"{start.isoformat()}T00:00:00Z",
                    "end_date_local": f"{end.isoformat()}T23:59:59Z",
                    "per_page": self.page_size,
                    "page": page,
                },
            )
            if not isinstance(batch, list) or not batch:
                break
            efforts.extend(batch)
            if len(batch) < self.page_size:
                break
        return efforts

    async def fetch_activities_page(self, page: int, after: int, before: int) -> List[Dict[str, Any]]:
        batch = await self._get(
            "/athlete/activities",
            {"after": after, "before": before, "per_page": self.page_size, "page": page},
        )
        return batch if isinstance(batch, list) else []

    async def fetch_achievements_page(self, athlete_id: int, page: int) -> List[Dict[str, Any]]:
        batch = await self._get(
            f"/athletes/{athlete_id}/koms",
            {"per_page": self.page_size, "page": page},
        )
        return batch if isinstance(batch, list) else []


__all__ = [
    "API_BASE",
    "StravaClient",
    "TOKEN_URL",
    "auth_url",
    "exchange_code_for_token",
    "refresh_access_token",
]

"""
Gamma API client used for Up/Down market discovery.

Only the event-by-slug lookup is needed. Every failure of that lookup
(transport, timeout, HTTP status, malformed body) surfaces as
GammaAPIError so the caller can move on to the next slot.
"""

import asyncio
import logging
from typing import Optional

import aiohttp
import orjson

from ..errors import GammaAPIError

logger = logging.getLogger(__name__)

GAMMA_API_URL = "https://gamma-api.polymarket.com"


class GammaClient:
    """
    Async Gamma client holding one lazily created aiohttp session.

    Use as ``async with GammaClient() as gamma:`` so the session is
    released when discovery is done.
    """

    DEFAULT_BASE_URL = GAMMA_API_URL

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout_seconds: float = 10.0):
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def base_url(self) -> str:
        """API base URL without trailing slash."""
        return self._base_url

    async def _session_for_request(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout_seconds),
            )
        return self._session

    async def close(self) -> None:
        """Release the HTTP session. Safe to call more than once."""
        session, self._session = self._session, None
        if session is not None and not session.closed:
            await session.close()

    async def __aenter__(self) -> "GammaClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def get_event_by_slug(self, slug: str) -> Optional[dict]:
        """
        Fetch one event by slug.

        Returns:
            Event object, or None when Gamma has no such event (404)

        Raises:
            GammaAPIError: On any other failure
        """
        session = await self._session_for_request()
        url = f"{self._base_url}/events/slug/{slug}"

        try:
            async with session.get(url) as resp:
                if resp.status == 404:
                    logger.debug(f"Gamma has no event {slug}")
                    return None
                if resp.status != 200:
                    body = await resp.text()
                    raise GammaAPIError(f"Event {slug}: HTTP {resp.status} - {body[:200]}")
                payload = await resp.read()
        except asyncio.TimeoutError as e:
            raise GammaAPIError(f"Event {slug}: timed out after {self._timeout_seconds}s") from e
        except aiohttp.ClientError as e:
            raise GammaAPIError(f"Event {slug}: request failed: {e}") from e

        try:
            event = orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            raise GammaAPIError(f"Event {slug}: body is not JSON: {e}") from e
        if not isinstance(event, dict):
            raise GammaAPIError(f"Event {slug}: expected an object, got {type(event).__name__}")
        return event

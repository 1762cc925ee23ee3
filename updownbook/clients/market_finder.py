"""
Up/Down market finder for Polymarket.

Finds the active short-interval Bitcoin Up/Down market by constructing
slugs directly from the interval grid:
"{prefix}-{slot_start_epoch_seconds}"

Example: btc-updown-15m-1760000400
"""

import logging
from datetime import datetime
from time import time
from typing import Optional

import orjson

from .gamma_client import GammaClient
from ..errors import GammaAPIError
from ..types import MarketDescriptor

logger = logging.getLogger(__name__)

DEFAULT_SLUG_PREFIX = "btc-updown-15m"
DEFAULT_INTERVAL_S = 900

# Slots probed, in intervals from the current one
SLOT_OFFSETS = (0, 1, 2)


def current_slot_start(now_ts: int, interval_s: int = DEFAULT_INTERVAL_S) -> int:
    """Floor an epoch-seconds timestamp to the market interval grid."""
    return now_ts - (now_ts % interval_s)


def build_market_slug(slot_start_ts: int, prefix: str = DEFAULT_SLUG_PREFIX) -> str:
    """
    Build the event slug for a market slot.

    The timestamp in the slug is the slot START (epoch seconds).
    """
    return f"{prefix}-{slot_start_ts}"


def parse_end_ts(end_date_str: str) -> int:
    """
    Parse an RFC 3339 end date (e.g. "2026-01-23T17:00:00Z") to epoch seconds.

    Returns 0 if the string is empty or unparseable.
    """
    if not isinstance(end_date_str, str) or not end_date_str:
        return 0
    if end_date_str.endswith("Z"):
        end_date_str = end_date_str[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(end_date_str)
    except ValueError:
        return 0
    if dt.tzinfo is None:
        return 0
    return int(dt.timestamp())


def parse_token_ids(raw) -> Optional[list[str]]:
    """
    Parse clobTokenIds, which Gamma sends as a JSON-encoded string
    (occasionally as a plain list).

    Returns None if the value cannot be decoded into a list of strings.
    """
    if isinstance(raw, str):
        try:
            raw = orjson.loads(raw)
        except orjson.JSONDecodeError:
            return None
    if not isinstance(raw, list) or not all(isinstance(t, str) for t in raw):
        return None
    return raw


class UpDownMarketFinder:
    """
    Finds the currently active Up/Down market on Polymarket.

    Strategy:
    1. Floor now to the interval grid
    2. Probe the current slot and the next two by slug
    3. Take the first event that is active and not closed
    4. Up token = clobTokenIds[0], Down token = clobTokenIds[1]
    """

    def __init__(
        self,
        gamma: GammaClient,
        slug_prefix: str = DEFAULT_SLUG_PREFIX,
        interval_s: int = DEFAULT_INTERVAL_S,
    ):
        """
        Initialize the market finder.

        Args:
            gamma: Gamma API client
            slug_prefix: Slug prefix of the market series
            interval_s: Market interval in seconds
        """
        self._gamma = gamma
        self._slug_prefix = slug_prefix
        self._interval_s = interval_s

    def candidate_slugs(self, now_ts: int) -> list[str]:
        """Slugs probed for a given time, in order."""
        base = current_slot_start(now_ts, self._interval_s)
        return [
            build_market_slug(base + offset * self._interval_s, self._slug_prefix)
            for offset in SLOT_OFFSETS
        ]

    async def find_active(self, now_ts: Optional[int] = None) -> Optional[MarketDescriptor]:
        """
        Find the active market.

        Args:
            now_ts: Reference time in epoch seconds (defaults to now)

        Returns:
            MarketDescriptor or None if no active market was found
        """
        if now_ts is None:
            now_ts = int(time())

        for slug in self.candidate_slugs(now_ts):
            try:
                event = await self._gamma.get_event_by_slug(slug)
            except GammaAPIError as e:
                logger.warning(f"Lookup failed for {slug}: {e}")
                continue

            if event is None:
                logger.debug(f"No event for slug: {slug}")
                continue
            if not isinstance(event, dict):
                logger.warning(f"Malformed event for {slug}: {type(event).__name__}")
                continue

            if not event.get("active", False) or event.get("closed", False):
                logger.debug(f"Event {slug} not active")
                continue

            markets = event.get("markets")
            if not isinstance(markets, list) or not markets or not isinstance(markets[0], dict):
                logger.debug(f"No usable market in event: {slug}")
                continue

            tokens = parse_token_ids(markets[0].get("clobTokenIds", ""))
            if tokens is None:
                # Unusable token list on an active market: stop searching
                logger.error(f"Unparseable clobTokenIds for {slug}")
                return None
            if len(tokens) < 2:
                logger.debug(f"Market {slug} has fewer than 2 tokens")
                continue

            market = MarketDescriptor(
                title=str(event.get("title") or ""),
                end_ts=parse_end_ts(event.get("endDate", "")),
                slug=slug,
                token_up=tokens[0],
                token_down=tokens[1],
            )
            logger.info(f"Found active market {slug}: {market.title}")
            return market

        logger.warning("No active market found")
        return None

"""
Polymarket API clients for market discovery.

This module contains:
- GammaClient: event lookup via Gamma API
- UpDownMarketFinder: active Up/Down market resolution
"""

from .gamma_client import GammaClient
from .market_finder import (
    UpDownMarketFinder,
    build_market_slug,
    current_slot_start,
    parse_end_ts,
    parse_token_ids,
)

__all__ = [
    "GammaClient",
    "UpDownMarketFinder",
    "build_market_slug",
    "current_slot_start",
    "parse_end_ts",
    "parse_token_ids",
]

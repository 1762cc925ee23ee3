"""
Utility functions for timestamps and complementary prices.

These are pure functions with no dependencies on other types.
"""

from time import time
from typing import Optional


def wall_ms() -> int:
    """Get current wall clock timestamp in milliseconds."""
    return int(time() * 1000)


def complement_price(price_str: str) -> Optional[str]:
    """
    Convert a decimal price string to its complement (1 - price).

    Returns the complement formatted with two decimals, or None if the
    price is not a plain decimal. Digit separators and surrounding
    whitespace, which float() would accept, are rejected.
    """
    if not isinstance(price_str, str) or "_" in price_str or price_str != price_str.strip():
        return None
    try:
        price = float(price_str)
    except ValueError:
        return None
    return f"{1.0 - price:.2f}"

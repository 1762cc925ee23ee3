"""
Market feed message interpreter.

Decodes one inbound frame into a partial top-of-book update and applies
it to the order book store, deriving the complementary side.

Handlers are kept minimal and fast: nothing here ever raises out to the
ingestion loop.
"""

import logging
from typing import Any, Optional, Union

import orjson

from ..errors import DecodeError
from ..state_store import OrderbookStore
from ..types import (
    BookLevel,
    OrderbookConfig,
    OrderbookState,
    TopOfBookUpdate,
    UpdateOutcome,
    complement_price,
    wall_ms,
)

logger = logging.getLogger(__name__)

# Keys the feed may use for the asset identifier, in lookup order
ASSET_ID_KEYS = ("asset_id", "assetId", "token_id")


def extract_asset_id(data: Any) -> Optional[str]:
    """Return the asset id under the first present alias, if it is a string."""
    if not isinstance(data, dict):
        return None
    for key in ASSET_ID_KEYS:
        if key in data:
            value = data[key]
            return value if isinstance(value, str) else None
    return None


def best_level(levels: Any) -> Optional[BookLevel]:
    """
    Top-of-book level from a side's level array.

    Levels arrive in ascending order per side, so the LAST entry is the
    top of book for both bids and asks. An entry without string price
    and size is unusable.
    """
    if not isinstance(levels, list) or not levels:
        return None
    last = levels[-1]
    if not isinstance(last, dict):
        return None
    price = last.get("price")
    size = last.get("size")
    if not isinstance(price, str) or not isinstance(size, str):
        return None
    return BookLevel(price=price, size=size)


def decode_message(raw: Union[str, bytes], config: OrderbookConfig) -> Optional[TopOfBookUpdate]:
    """
    Decode a raw frame into an update for a configured instrument.

    Returns:
        TopOfBookUpdate (possibly empty), or None if the frame is for an
        instrument we do not track

    Raises:
        DecodeError: If the frame is not JSON or has no asset id
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise DecodeError(f"Frame is not JSON: {e}") from e

    asset_id = extract_asset_id(data)
    if asset_id is None:
        raise DecodeError("Frame has no asset id")

    instrument = config.instrument_for(asset_id)
    if instrument is None:
        return None

    return TopOfBookUpdate(
        instrument=instrument,
        best_bid=best_level(data.get("bids")),
        best_ask=best_level(data.get("asks")),
    )


def apply_update(state: OrderbookState, update: TopOfBookUpdate, ts_ms: int) -> None:
    """
    Apply a partial update in place.

    Direct fields always commit. The other instrument receives the
    complement of the incoming raw price, same size:
    - other ask = 1 - bid
    - other bid = 1 - ask
    A non-numeric price skips only the derived fields for that side.
    """
    instrument = update.instrument
    other = instrument.other

    if update.best_bid is not None:
        price, size = update.best_bid.price, update.best_bid.size
        state.set_bid(instrument, price, size)
        derived = complement_price(price)
        if derived is not None:
            state.set_ask(other, derived, size)
        else:
            logger.debug(f"Non-numeric bid price {price!r}, skipping derived ask")

    if update.best_ask is not None:
        price, size = update.best_ask.price, update.best_ask.size
        state.set_ask(instrument, price, size)
        derived = complement_price(price)
        if derived is not None:
            state.set_bid(other, derived, size)
        else:
            logger.debug(f"Non-numeric ask price {price!r}, skipping derived bid")

    state.last_update_ms = ts_ms


class MessageInterpreter:
    """
    Routes frames for the configured market into the order book store.

    Stats are kept for diagnostics; they never affect behaviour.
    """

    def __init__(self, config: OrderbookConfig, store: OrderbookStore):
        self._config = config
        self._store = store

        self.frames_seen = 0
        self.decode_errors = 0
        self.applied = 0

    @property
    def config(self) -> OrderbookConfig:
        """Instrument configuration."""
        return self._config

    def interpret(self, raw: Union[str, bytes]) -> UpdateOutcome:
        """
        Interpret one frame. MUST BE FAST.

        Returns:
            IGNORED, NO_CHANGE or APPLIED (store mutated)
        """
        self.frames_seen += 1
        try:
            update = decode_message(raw, self._config)
        except DecodeError as e:
            # Minimal logging - frames like acks and arrays land here
            self.decode_errors += 1
            logger.debug(f"Ignoring frame: {e}")
            return UpdateOutcome.IGNORED

        if update is None:
            return UpdateOutcome.IGNORED

        if update.is_empty:
            return UpdateOutcome.NO_CHANGE

        ts = wall_ms()
        self._store.write(lambda state: apply_update(state, update, ts))
        self.applied += 1
        return UpdateOutcome.APPLIED


def interpret(raw: Union[str, bytes], config: OrderbookConfig, store: OrderbookStore) -> UpdateOutcome:
    """One-shot form of MessageInterpreter.interpret()."""
    return MessageInterpreter(config, store).interpret(raw)

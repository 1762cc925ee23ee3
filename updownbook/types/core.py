"""
Core enums - the fundamental vocabulary of the orderbook layer.

These are the basic building blocks used throughout the codebase.
"""

from enum import Enum, auto


class Instrument(Enum):
    """One of the two complementary outcome tokens."""
    UP = auto()
    DOWN = auto()

    @property
    def other(self) -> "Instrument":
        """The complementary instrument."""
        return Instrument.DOWN if self is Instrument.UP else Instrument.UP


class UpdateOutcome(Enum):
    """Result of interpreting one inbound frame."""
    IGNORED = auto()    # Not JSON, no asset id, or an unknown instrument
    NO_CHANGE = auto()  # Known instrument but no usable bid/ask
    APPLIED = auto()    # State store mutated


class LayerState(Enum):
    """Data layer lifecycle."""
    CONNECTING = auto()
    SUBSCRIBING = auto()
    STREAMING = auto()
    STOPPED = auto()


class LayerExit(Enum):
    """Why the data layer reached STOPPED."""
    SHUTDOWN = auto()          # Explicit shutdown request
    STREAM_ENDED = auto()      # Feed closed without a shutdown request
    CONNECT_FAILED = auto()    # Transport could not be established
    SUBSCRIBE_FAILED = auto()  # A subscription frame could not be sent

    @property
    def is_fatal(self) -> bool:
        """True for connection-level failures a caller may want to restart on."""
        return self in (LayerExit.CONNECT_FAILED, LayerExit.SUBSCRIBE_FAILED)

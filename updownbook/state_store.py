"""
Guarded store for the combined Up/Down order book state.

Single writer (the ingestion loop), multiple readers (consumers).
"""

import threading
from dataclasses import replace
from typing import Callable, Optional

from .types import OrderbookState


class OrderbookStore:
    """
    Thread-safe holder of the single mutable OrderbookState.

    - write() applies a mutator under the lock
    - read() returns an independent copy taken under the lock

    Uses threading.Lock for synchronization, making it safe
    for both sync and async contexts (critical sections are a few
    attribute assignments, so readers never block long).
    """

    def __init__(self, initial: Optional[OrderbookState] = None):
        self._state = initial if initial is not None else OrderbookState()
        self._seq: int = 0
        self._lock = threading.Lock()

    def write(self, mutator: Callable[[OrderbookState], None]) -> int:
        """
        Apply a mutation with exclusive access.

        Args:
            mutator: Callable that edits the state in place

        Returns:
            New sequence number
        """
        with self._lock:
            mutator(self._state)
            self._seq += 1
            return self._seq

    def read(self) -> OrderbookState:
        """
        Read a self-consistent copy of the current state.

        The copy is never affected by later writes.
        """
        with self._lock:
            return replace(self._state)

    def read_with_seq(self) -> tuple[OrderbookState, int]:
        """
        Read a state copy and the sequence number it corresponds to.

        Returns:
            Tuple of (state, sequence_number)
        """
        with self._lock:
            return replace(self._state), self._seq

    def get_seq(self) -> int:
        """
        Get current sequence without copying the state.

        Useful for quick freshness checks without full read.
        """
        return self._seq

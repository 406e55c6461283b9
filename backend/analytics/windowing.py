"""
windowing.py — Bounded Reading History
=======================================

Keeps the most recent readings for the recommenders and the forecaster.

How it works:
    1. Each incoming reading is appended in arrival order.
    2. When the buffer holds `capacity` readings, the oldest is evicted.
    3. Consumers receive an immutable snapshot (tuple) of the buffer;
       they slice it but never change it.

Count-based rather than time-based: the forecaster and the FCR estimate
are defined over a number of samples (24), not a duration.
"""

import logging
from collections import deque

import pandas as pd

from . import config
from .records import Reading
from .utils import readings_to_frame

logger = logging.getLogger("analytics.windowing")


class HistoryWindow:
    """
    Fixed-capacity ring buffer of Readings.

    Attributes:
        capacity (int): Maximum number of readings retained.
        _buffer (deque[Reading]): Readings, oldest first.
    """

    def __init__(self, capacity: int = None):
        """
        Args:
            capacity: Readings to retain. Defaults to config.HISTORY_SIZE.
        """
        self.capacity = config.HISTORY_SIZE if capacity is None else capacity
        if self.capacity < 1:
            raise ValueError(f"History capacity must be positive, got {self.capacity}")
        self._buffer = deque(maxlen=self.capacity)

    def add_record(self, reading: Reading) -> None:
        """Append a reading, evicting the oldest when full."""
        if len(self._buffer) == self.capacity:
            logger.debug(f"Evicting reading from {self._buffer[0].timestamp}")
        self._buffer.append(reading)

    def extend(self, readings) -> None:
        for reading in readings:
            self.add_record(reading)

    def get_window(self) -> tuple:
        """Snapshot of the buffered readings, oldest first."""
        return tuple(self._buffer)

    def latest(self, count: int) -> tuple:
        """The most recent `count` readings (fewer if not yet buffered)."""
        if count <= 0:
            return ()
        return tuple(self._buffer)[-count:]

    def to_frame(self) -> pd.DataFrame:
        """The buffered readings as a DataFrame."""
        return readings_to_frame(self._buffer)

    def get_buffer_size(self) -> int:
        return len(self._buffer)

    def is_full(self) -> bool:
        return len(self._buffer) == self.capacity

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self):
        return iter(tuple(self._buffer))

    def reset(self) -> None:
        """Clear the buffer entirely."""
        self._buffer.clear()
        logger.info("History window reset")

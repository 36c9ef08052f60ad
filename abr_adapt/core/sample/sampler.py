"""Throughput samplers.

A sampler listens to byte-level transfer progress from the host and turns
it into ThroughputSample entries in a SampleStore. The mode decides when a
sample is finished.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from .store import SampleStore, monotonic_ms


# Default thresholds for the threshold-based modes
DEFAULT_THRESHOLD_MS = 500.0
DEFAULT_THRESHOLD_BYTES = 100_000

BITS_IN_BYTE = 8


class SampleMode(Enum):
    """When an in-progress sample is finished and delivered."""

    TRANSFER = 'transfer'  # one sample per transfer, finished at transfer end
    TIME = 'time'  # once the time spent downloading reaches the threshold
    SIZE = 'size'  # once the bytes downloaded reach the threshold
    SIZE_OR_TIME = 'size_or_time'  # whichever threshold is reached first
    SIZE_AND_TIME = 'size_and_time'  # once both thresholds are reached

    def sample_is_ready(
        self,
        duration_ms: float,
        bytes_transferred: int,
        threshold_ms: float,
        threshold_bytes: int,
    ) -> bool:
        """Whether a sample with these totals should be finished now."""
        if self is SampleMode.TIME:
            return duration_ms >= threshold_ms
        if self is SampleMode.SIZE:
            return bytes_transferred >= threshold_bytes
        if self is SampleMode.SIZE_OR_TIME:
            return bytes_transferred >= threshold_bytes or duration_ms >= threshold_ms
        if self is SampleMode.SIZE_AND_TIME:
            return bytes_transferred >= threshold_bytes and duration_ms >= threshold_ms
        return False


class SwitchableSampler:
    """Samples the throughput in one of several modes.

    Only time spent inside transfers counts towards a sample's duration;
    the idle gap between a transfer end and the next transfer start is
    excluded.

    Args:
        sample_store: Store receiving finished samples.
        mode: Sampling mode.
        threshold_ms: Time threshold for TIME-based modes, in ms.
        threshold_bytes: Size threshold for SIZE-based modes, in bytes.
        clock: Clock returning the current time in ms.
    """

    def __init__(
        self,
        sample_store: SampleStore,
        mode: SampleMode = SampleMode.TRANSFER,
        threshold_ms: float = DEFAULT_THRESHOLD_MS,
        threshold_bytes: int = DEFAULT_THRESHOLD_BYTES,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.sample_store = sample_store
        self.mode = mode
        self.threshold_ms = threshold_ms
        self.threshold_bytes = threshold_bytes
        self.clock = clock
        self.reset()

    def reset(self) -> None:
        """Drop any in-progress sample."""
        self._sampling = False
        self._clock_ms: Optional[float] = None  # None while paused between transfers
        self._bytes_transferred = 0
        self._duration_ms = 0.0

    def change_mode(self, mode: SampleMode) -> None:
        """Switch to a new sampling mode; the in-progress sample carries over."""
        self.mode = mode

    @property
    def currently_sampling(self) -> bool:
        return self._sampling

    # ==================== Transfer callbacks ====================

    def on_transfer_start(self) -> None:
        if not self._sampling:
            self._start_sampling()
        self._clock_ms = self.clock()

    def on_bytes_transferred(self, bytes_transferred: int) -> None:
        if not self._sampling:
            self._start_sampling()
            self._clock_ms = self.clock()
        self._advance()
        self._bytes_transferred += bytes_transferred

        if self.mode.sample_is_ready(self._duration_ms, self._bytes_transferred,
                                     self.threshold_ms, self.threshold_bytes):
            self._finish_sampling()
            self._start_sampling()
            self._clock_ms = self.clock()

    def on_transfer_end(self) -> None:
        if not self._sampling:
            return
        self._advance()
        self._clock_ms = None
        if self.mode is SampleMode.TRANSFER:
            self._finish_sampling()

    def on_loading_stopped(self) -> None:
        """Finish a premature sample when the host stops loading."""
        if self._sampling:
            self._advance()
            self._finish_sampling()
            logging.debug("Loading stopped, finished premature sample.")

    # ==================== Internals ====================

    def _start_sampling(self) -> None:
        self._sampling = True
        self._bytes_transferred = 0
        self._duration_ms = 0.0

    def _advance(self) -> None:
        if self._clock_ms is None:
            return
        now_ms = self.clock()
        self._duration_ms += now_ms - self._clock_ms
        self._clock_ms = now_ms

    def _finish_sampling(self) -> None:
        # empty or instantaneous samples carry no rate information
        if self._duration_ms > 0 and self._bytes_transferred > 0:
            self.sample_store.add_sample(
                self._bytes_transferred * BITS_IN_BYTE,
                self._duration_ms,
                arrival_time_ms=self.clock(),
            )
        self._sampling = False
        self._clock_ms = None
        self._bytes_transferred = 0
        self._duration_ms = 0.0

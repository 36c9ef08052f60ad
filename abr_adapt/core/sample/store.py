"""Append-only store of throughput samples.

Samples are kept in arrival order and are never reordered or mutated; the
store only trims (when bounded) or windows them for queries.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional

import numpy as np
from numpy.typing import NDArray


MILLISECONDS_IN_SECOND = 1000.0


def monotonic_ms() -> float:
    """Default clock for telemetry timestamps, in milliseconds."""
    return time.monotonic() * MILLISECONDS_IN_SECOND


@dataclass(frozen=True)
class ThroughputSample:
    """One measured transfer: bits delivered over a duration.

    Attributes:
        arrival_time_ms: Time at which the sample finished, in ms.
        bits_transferred: Number of bits delivered during the sample.
        duration_ms: Length of the sample period in ms. Always > 0 for
            samples held by a SampleStore.
    """
    arrival_time_ms: float
    bits_transferred: int
    duration_ms: float

    @property
    def bits_per_second(self) -> float:
        return self.bits_transferred * MILLISECONDS_IN_SECOND / self.duration_ms

    @property
    def bytes_transferred(self) -> int:
        return self.bits_transferred // 8


class SampleStore:
    """Windowable sequence of throughput samples.

    Args:
        max_samples: If given, only the most recent `max_samples` samples are
            retained. None keeps every sample for the session.
        clock: Clock used to timestamp samples added without an explicit
            arrival time, returning milliseconds.
    """

    def __init__(
        self,
        max_samples: Optional[int] = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        if max_samples is not None and max_samples <= 0:
            raise ValueError(f"max_samples must be positive, got {max_samples}")
        self.max_samples = max_samples
        self.clock = clock
        self._samples: Deque[ThroughputSample] = deque(maxlen=max_samples)
        self._sample_count = 0

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def sample_count(self) -> int:
        """Number of samples accepted since the last clear, including trimmed ones."""
        return self._sample_count

    def add_sample(
        self,
        bits_transferred: int,
        duration_ms: float,
        arrival_time_ms: Optional[float] = None,
    ) -> Optional[ThroughputSample]:
        """Append a new sample.

        Zero- or negative-duration samples cannot yield a rate and are
        dropped.

        Returns:
            The stored sample, or None if it was rejected.
        """
        if duration_ms <= 0:
            logging.debug(f"Dropping throughput sample with duration {duration_ms} ms")
            return None
        if bits_transferred < 0:
            raise ValueError(f"bits_transferred must be non-negative, got {bits_transferred}")
        if arrival_time_ms is None:
            arrival_time_ms = self.clock()
        sample = ThroughputSample(
            arrival_time_ms=arrival_time_ms,
            bits_transferred=int(bits_transferred),
            duration_ms=duration_ms,
        )
        self._samples.append(sample)
        self._sample_count += 1
        return sample

    def last(self) -> Optional[ThroughputSample]:
        """The most recent sample, or None if the store is empty."""
        return self._samples[-1] if self._samples else None

    def window(self, n: int) -> List[ThroughputSample]:
        """The most recent min(n, size) samples, oldest first.

        A window larger than the store yields every sample rather than an
        error.
        """
        if n <= 0:
            return []
        n = min(n, len(self._samples))
        return list(self._samples)[len(self._samples) - n:]

    def rates(self, n: int) -> NDArray[np.float64]:
        """Bits-per-second of the window(n) samples, oldest first."""
        return np.array([s.bits_per_second for s in self.window(n)], dtype=np.float64)

    def durations(self, n: int) -> NDArray[np.float64]:
        """Durations in ms of the window(n) samples, oldest first."""
        return np.array([s.duration_ms for s in self.window(n)], dtype=np.float64)

    def clear(self) -> None:
        """Remove all samples."""
        self._samples.clear()
        self._sample_count = 0

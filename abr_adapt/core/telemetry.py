"""Playback telemetry model.

Holds what the host has reported so far: throughput samples, the last
completed chunk, buffer occupancy and manifest duration. The host may push
events from its network thread while decisions run on the playback thread,
so every mutation takes the model's re-entrant lock; decision code holds the
same lock to read a consistent snapshot.
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from .lookahead import LookaheadTable
from .sample import SampleStore, ThroughputSample, monotonic_ms


# Default maximum buffer target in ms
DEFAULT_MAX_BUFFER_MS = 30000.0

BITS_IN_BYTE = 8
MILLISECONDS_IN_SECOND = 1000.0


@dataclass(frozen=True)
class ChunkDescriptor:
    """Attributes of one completed chunk download.

    Attributes:
        chunk_index: Position of the chunk in the content.
        representation_bitrate: Bitrate in bps of the representation loaded.
        byte_size: Number of bytes loaded.
        duration_ms: Media duration of the chunk.
        load_duration_ms: Time taken to load the chunk.
    """
    chunk_index: int
    representation_bitrate: int
    byte_size: int
    duration_ms: float
    load_duration_ms: float

    @property
    def is_degenerate(self) -> bool:
        """A chunk with no media duration or no bytes carries no adaptation signal."""
        return self.duration_ms <= 0 or self.byte_size <= 0


@dataclass
class ChunkRecord:
    """Per-chunk statistics for an external logger."""
    chunk_index: int
    arrival_time_ms: float
    load_duration_ms: float
    stall_duration_ms: float  # total stall time of the session so far
    representation_bitrate: int
    delivery_rate_bps: float  # rate of the last throughput sample
    actual_rate_bps: float  # bytes loaded over the chunk's media duration
    byte_size: int
    buffer_level_ms: float
    chunk_duration_ms: float


class PlaybackTelemetry:
    """Snapshot of the playback session fed by the host.

    Args:
        max_buffer_ms: Maximum buffer target in ms.
        lookahead: Optional chunk size table, loaded once before playback.
        max_samples: Bound on retained throughput samples, None for all.
        clock: Clock returning the current time in ms.
    """

    def __init__(
        self,
        max_buffer_ms: float = DEFAULT_MAX_BUFFER_MS,
        lookahead: Optional[LookaheadTable] = None,
        max_samples: Optional[int] = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        if max_buffer_ms <= 0:
            raise ValueError(f"max_buffer_ms must be positive, got {max_buffer_ms}")
        self.lock = threading.RLock()
        self.max_buffer_ms = max_buffer_ms
        self.lookahead = lookahead
        self.clock = clock
        self.samples = SampleStore(max_samples=max_samples, clock=clock)
        self._reset_fields()

    def _reset_fields(self) -> None:
        self._last_chunk: Optional[ChunkDescriptor] = None
        self._buffered_duration_ms = 0.0
        self._manifest_duration_ms: Optional[float] = None
        self._total_stall_ms = 0.0
        self._records: List[ChunkRecord] = []

    # ==================== Events ====================

    def sample_completed(
        self,
        bits_transferred: int,
        duration_ms: float,
        arrival_time_ms: Optional[float] = None,
    ) -> Optional[ThroughputSample]:
        with self.lock:
            return self.samples.add_sample(bits_transferred, duration_ms, arrival_time_ms)

    def chunk_completed(
        self,
        descriptor: ChunkDescriptor,
        arrival_time_ms: Optional[float] = None,
    ) -> ChunkRecord:
        """Overwrite the last chunk and append its statistics record."""
        with self.lock:
            if arrival_time_ms is None:
                arrival_time_ms = self.clock()
            if descriptor.is_degenerate:
                logging.debug(f"Degenerate chunk completed: {descriptor}")
            self._last_chunk = descriptor

            last_sample = self.samples.last()
            if descriptor.duration_ms > 0:
                actual_rate = descriptor.byte_size * BITS_IN_BYTE * MILLISECONDS_IN_SECOND / descriptor.duration_ms
            else:
                actual_rate = 0.0
            record = ChunkRecord(
                chunk_index=descriptor.chunk_index,
                arrival_time_ms=arrival_time_ms,
                load_duration_ms=descriptor.load_duration_ms,
                stall_duration_ms=self._total_stall_ms,
                representation_bitrate=descriptor.representation_bitrate,
                delivery_rate_bps=last_sample.bits_per_second if last_sample is not None else 0.0,
                actual_rate_bps=actual_rate,
                byte_size=descriptor.byte_size,
                buffer_level_ms=self._buffered_duration_ms,
                chunk_duration_ms=descriptor.duration_ms,
            )
            self._records.append(record)
            return record

    def update_buffer(self, buffered_duration_ms: float) -> None:
        with self.lock:
            self._buffered_duration_ms = max(float(buffered_duration_ms), 0.0)

    def set_manifest_duration(self, duration_ms: Optional[float]) -> None:
        with self.lock:
            self._manifest_duration_ms = duration_ms

    def record_stall(self, stall_duration_ms: float) -> None:
        """Add a playback stall to the session total."""
        with self.lock:
            if stall_duration_ms > 0:
                self._total_stall_ms += stall_duration_ms

    def clear(self) -> None:
        """Reset to the state of a new session; the lookahead table is kept."""
        with self.lock:
            self.samples.clear()
            self._reset_fields()

    # ==================== Queries ====================

    def data_available(self) -> bool:
        """True once a throughput sample and a completed chunk exist."""
        with self.lock:
            return len(self.samples) > 0 and self._last_chunk is not None

    @property
    def last_sample(self) -> Optional[ThroughputSample]:
        return self.samples.last()

    @property
    def last_chunk(self) -> Optional[ChunkDescriptor]:
        return self._last_chunk

    @property
    def last_chunk_index(self) -> Optional[int]:
        return self._last_chunk.chunk_index if self._last_chunk is not None else None

    @property
    def last_chunk_representation(self) -> Optional[int]:
        """Bitrate in bps of the last loaded chunk."""
        return self._last_chunk.representation_bitrate if self._last_chunk is not None else None

    @property
    def last_chunk_byte_size(self) -> Optional[int]:
        return self._last_chunk.byte_size if self._last_chunk is not None else None

    @property
    def last_chunk_duration_ms(self) -> Optional[float]:
        return self._last_chunk.duration_ms if self._last_chunk is not None else None

    @property
    def last_chunk_load_duration_ms(self) -> Optional[float]:
        return self._last_chunk.load_duration_ms if self._last_chunk is not None else None

    @property
    def buffered_duration_ms(self) -> float:
        return self._buffered_duration_ms

    @property
    def manifest_duration_ms(self) -> Optional[float]:
        return self._manifest_duration_ms

    @property
    def total_stall_ms(self) -> float:
        return self._total_stall_ms

    @property
    def total_chunks(self) -> Optional[int]:
        """Number of chunks in the content, if known.

        Taken from the manifest duration over the chunk duration, or from
        the lookahead table when the manifest duration is unknown.
        """
        if self._manifest_duration_ms is not None and self._last_chunk is not None \
                and self._last_chunk.duration_ms > 0:
            return int(math.ceil(self._manifest_duration_ms / self._last_chunk.duration_ms))
        if self.lookahead is not None:
            return self.lookahead.num_chunks
        return None

    def remaining_chunks(self) -> Optional[int]:
        """Chunks left after the last completed one, if the total is known."""
        total = self.total_chunks
        if total is None or self._last_chunk is None:
            return total
        return max(total - self._last_chunk.chunk_index - 1, 0)

    def records(self) -> List[ChunkRecord]:
        with self.lock:
            return list(self._records)

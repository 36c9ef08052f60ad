"""Streaming simulator combining a lookahead table and a network trace.

Time Unit Convention: every duration in this module is in MILLISECONDS.
"""

import math
from dataclasses import dataclass

from ..core.lookahead import LookaheadTable
from .trace import NetworkTrace


CHUNK_DURATION_MS = 4000.0  # every time add this amount to buffer
BUFFER_THRESH_MS = 30000.0  # max buffer limit
DRAIN_BUFFER_SLEEP_TIME_MS = 500.0


@dataclass
class StepResult:
    """Result of downloading one chunk."""
    delay_ms: float                 # Download delay
    sleep_time_ms: float            # Sleep time when the buffer is full
    buffer_ms: float                # Buffer level after the download and sleep
    rebuffer_ms: float              # Stall time during the download
    chunk_index: int                # Index of the downloaded chunk
    chunk_size: int                 # Size of the downloaded chunk in bytes
    end_of_video: bool              # Whether the downloaded chunk was the last
    remaining_chunks: int           # Number of chunks left to download


class StreamingSimulator:
    """Plays a video described by a lookahead table over a network trace.

    The `step` method, in order:
        1. looks up the chunk size for the requested representation
        2. downloads it over the network trace
        3. updates the buffer and accounts for stalls
        4. sleeps in DRAIN_BUFFER_SLEEP_TIME_MS quanta while the buffer is
           above the threshold
        5. advances to the next chunk
    """

    def __init__(
        self,
        lookahead: LookaheadTable,
        network: NetworkTrace,
        chunk_duration_ms: float = CHUNK_DURATION_MS,
        buffer_thresh_ms: float = BUFFER_THRESH_MS,
        drain_buffer_sleep_time_ms: float = DRAIN_BUFFER_SLEEP_TIME_MS,
    ):
        self.lookahead = lookahead
        self.network = network
        self.chunk_duration_ms = chunk_duration_ms
        self.buffer_thresh_ms = buffer_thresh_ms
        self.drain_buffer_sleep_time_ms = drain_buffer_sleep_time_ms
        self.reset()

    def reset(self) -> None:
        """Rewind the video and the network trace."""
        self.buffer_ms = 0.0
        self.chunk_counter = 0
        self.network.reset()

    @property
    def num_chunks(self) -> int:
        return self.lookahead.num_chunks

    @property
    def num_representations(self) -> int:
        return self.lookahead.num_representations

    def update_buffer(self, delay_ms: float) -> float:
        """Drain the buffer during a download and add the new chunk.

        Returns:
            Rebuffer (stall) time in milliseconds
        """
        rebuf = max(delay_ms - self.buffer_ms, 0.0)
        self.buffer_ms = max(self.buffer_ms - delay_ms, 0.0)
        self.buffer_ms += self.chunk_duration_ms
        return rebuf

    def drain_buffer_overflow(self) -> float:
        """Sleep while the buffer exceeds the threshold.

        Returns:
            Sleep time in milliseconds
        """
        sleep_time = 0.0
        if self.buffer_ms > self.buffer_thresh_ms:
            drain_buffer_time = self.buffer_ms - self.buffer_thresh_ms
            sleep_time = math.ceil(drain_buffer_time / self.drain_buffer_sleep_time_ms) * \
                self.drain_buffer_sleep_time_ms
            self.buffer_ms -= sleep_time
            self.network.idle(sleep_time)
        return sleep_time

    def step(self, index: int) -> StepResult:
        """Download the current chunk at catalog index `index`.

        Raises:
            IndexError: If `index` is not a representation of the table.
            RuntimeError: If the video has already ended.
        """
        if not 0 <= index < self.num_representations:
            raise IndexError(f"Representation index {index} out of range [0, {self.num_representations - 1}]")
        if self.chunk_counter >= self.num_chunks:
            raise RuntimeError("Video has ended, call reset() first")

        chunk_index = self.chunk_counter
        chunk_size = self.lookahead.byte_size(chunk_index, index)
        delay = self.network.download(chunk_size)
        rebuf = self.update_buffer(delay)
        sleep_time = self.drain_buffer_overflow()

        self.chunk_counter += 1
        remaining = self.num_chunks - self.chunk_counter
        return StepResult(
            delay_ms=delay,
            sleep_time_ms=sleep_time,
            buffer_ms=self.buffer_ms,
            rebuffer_ms=rebuf,
            chunk_index=chunk_index,
            chunk_size=chunk_size,
            end_of_video=remaining <= 0,
            remaining_chunks=remaining,
        )

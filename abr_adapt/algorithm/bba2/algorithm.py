"""Buffer-reservoir heuristic (BBA2).

Two regimes, switched by one flag (static_alg_par):

- startup (flag 0): below the reservoir, step one rung up when the last
  chunk downloaded much faster than real time, else hold; beyond the
  reservoir, take the more aggressive of BBA1 and that startup step, and
  leave startup once BBA1 wins.
- BBA1 (flag 1): below the reservoir, lowest; beyond it, the BBA1 map.

The flag also switches to BBA1 whenever a chunk took longer to download
than its media duration.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from ..abc import AbstractAlgorithm
from .reservoir import bba1_rate_index, compute_reservoir_ms, whole_chunks_ms


# Startup step-up threshold below the reservoir, as a fraction of chunk duration
STARTUP_FAST_FRACTION = 0.125

# Startup step-up threshold beyond the reservoir, as a fraction of chunk duration
BEYOND_FAST_FRACTION = 0.5

# Buffer level, as a fraction of max buffer, at which BBA1 reaches the highest bitrate
CAP_FRACTION = 0.9

# Upper clamp of the reservoir, as a fraction of max buffer
RESERVOIR_MAX_FRACTION = 0.6

# Reservoir lookahead window, in max buffers worth of chunks
RESERVOIR_WINDOW_FACTOR = 2

BITS_IN_BYTE = 8
MILLISECONDS_IN_SECOND = 1000.0


@dataclass(frozen=True)
class Bba2Config:
    """Configuration of the buffer-reservoir heuristic."""
    startup_fast_fraction: float = STARTUP_FAST_FRACTION
    beyond_fast_fraction: float = BEYOND_FAST_FRACTION
    cap_fraction: float = CAP_FRACTION
    reservoir_max_fraction: float = RESERVOIR_MAX_FRACTION
    reservoir_window_factor: float = RESERVOIR_WINDOW_FACTOR

    def __post_init__(self):
        for name in ('startup_fast_fraction', 'beyond_fast_fraction', 'cap_fraction', 'reservoir_max_fraction'):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        if self.reservoir_window_factor <= 0:
            raise ValueError(f"reservoir_window_factor must be positive, got {self.reservoir_window_factor}")


class Bba2Algorithm(AbstractAlgorithm):
    """BBA2 buffer-based adaptation.

    Recomputes once per completed chunk and reports ADAPTIVE only when the
    selected index changes. Without a lookahead table the reservoir is
    unknown and the below-reservoir rules apply.

    Attributes:
        static_alg_par: 0 in the startup regime, 1 in the BBA1 regime.
        reservoir_ms: Reservoir of the last recomputation, None if unknown.
    """

    ADAPTIVE_ON_RECOMPUTE = False

    def __init__(self, catalog, telemetry, config: Optional[Bba2Config] = None):
        super().__init__(catalog, telemetry, config if config is not None else Bba2Config())

    def reset_state(self) -> None:
        self.static_alg_par = 0
        self.reservoir_ms: Optional[float] = None

    def compute_index(self, buffered_duration_ms: float) -> Optional[int]:
        if not self.chunk_changed():
            return None

        chunk = self.telemetry.last_chunk
        last_index = self.catalog.index_of(chunk.representation_bitrate)
        delivery_rate = self.telemetry.last_sample.bits_per_second
        # time to fetch the last chunk at the last delivery rate
        if delivery_rate > 0:
            sft_ms = BITS_IN_BYTE * MILLISECONDS_IN_SECOND * chunk.byte_size / delivery_rate
        else:
            # nothing delivered: slower than real time
            sft_ms = math.inf

        max_buffer_ms = self.telemetry.max_buffer_ms
        self.reservoir_ms = compute_reservoir_ms(
            self.telemetry.lookahead,
            chunk_index=chunk.chunk_index,
            representation_index=last_index,
            last_bitrate=chunk.representation_bitrate,
            chunk_duration_ms=chunk.duration_ms,
            max_buffer_ms=max_buffer_ms,
            remaining_chunks=self.telemetry.remaining_chunks(),
            window_factor=self.config.reservoir_window_factor,
            max_fraction=self.config.reservoir_max_fraction,
        )
        if self.reservoir_ms is None:
            logging.debug("No lookahead table, BBA2 stays in the below-reservoir branch")

        if sft_ms > chunk.duration_ms:
            self.static_alg_par = 1
        one_up = max(last_index - 1, 0)

        if self.reservoir_ms is None or buffered_duration_ms < self.reservoir_ms:
            if self.static_alg_par != 0:
                return self.catalog.lowest_index
            if sft_ms < self.config.startup_fast_fraction * chunk.duration_ms:
                return one_up
            return last_index

        bba1_index = bba1_rate_index(
            self.catalog,
            last_index,
            buffered_duration_ms,
            self.reservoir_ms,
            self.config.cap_fraction * whole_chunks_ms(max_buffer_ms, chunk.duration_ms),
        )
        if self.static_alg_par != 0:
            return bba1_index

        if sft_ms <= self.config.beyond_fast_fraction * chunk.duration_ms:
            startup_index = one_up
        else:
            startup_index = self.catalog.lowest_index
        if bba1_index < startup_index:
            self.static_alg_par = 1
        return min(bba1_index, startup_index)

"""Buffer reservoir and BBA1 rate map used by BBA2."""

import math
from typing import Optional

from ...core.catalog import RepresentationCatalog
from ...core.lookahead import LookaheadTable


BITS_IN_BYTE = 8
MILLISECONDS_IN_SECOND = 1000.0


def whole_chunks_ms(buffer_ms: float, chunk_duration_ms: float) -> float:
    """Largest multiple of the chunk duration that fits in `buffer_ms`."""
    return math.floor(buffer_ms / chunk_duration_ms) * chunk_duration_ms


def reservoir_window(
    max_buffer_ms: float,
    chunk_duration_ms: float,
    remaining_chunks: Optional[int],
    window_factor: float,
) -> int:
    """Number of future chunks inspected: min(factor * max_buffer / chunk, remaining)."""
    window = int(window_factor * math.floor(max_buffer_ms / chunk_duration_ms))
    if remaining_chunks is not None:
        window = min(window, remaining_chunks)
    return max(window, 0)


def compute_reservoir_ms(
    lookahead: Optional[LookaheadTable],
    chunk_index: int,
    representation_index: int,
    last_bitrate: int,
    chunk_duration_ms: float,
    max_buffer_ms: float,
    remaining_chunks: Optional[int] = None,
    window_factor: float = 2,
    max_fraction: float = 0.6,
) -> Optional[float]:
    """Reservoir size in ms from the upcoming chunk sizes.

    Future chunks at the last representation are split into those larger and
    those not larger than the average chunk at that bitrate. The reservoir is
    the time needed to download the surplus of the large ones at the last
    bitrate, 8 * (large - small) / last_bitrate, clamped to
    [2 * chunk_duration, max_fraction * max_buffer]. Chunks missing from the
    table are skipped.

    Returns:
        Reservoir in ms, or None without a lookahead table.
    """
    if lookahead is None:
        return None

    window = reservoir_window(max_buffer_ms, chunk_duration_ms, remaining_chunks, window_factor)
    average_size = last_bitrate * chunk_duration_ms / MILLISECONDS_IN_SECOND / BITS_IN_BYTE
    large_chunks = 0
    small_chunks = 0
    for i in range(window):
        size = lookahead.byte_size(chunk_index + 1 + i, representation_index)
        if size is None:
            continue
        if size > average_size:
            large_chunks += size
        else:
            small_chunks += size

    reservoir = BITS_IN_BYTE * MILLISECONDS_IN_SECOND * (large_chunks - small_chunks) / last_bitrate
    lower = 2 * chunk_duration_ms
    upper = max_fraction * whole_chunks_ms(max_buffer_ms, chunk_duration_ms)
    if reservoir < lower:
        reservoir = lower
    elif reservoir > upper:
        reservoir = upper
    return reservoir


def bba1_rate_index(
    catalog: RepresentationCatalog,
    last_index: int,
    buffered_duration_ms: float,
    reservoir_ms: float,
    cushion_end_ms: float,
) -> int:
    """BBA1 map from buffer level to catalog index.

    Below the reservoir: lowest. Above the cushion end: highest. In between
    the bitrate is interpolated linearly between the lowest and the highest
    and snapped to the nearest index at or above it. Outside the extremes the
    result moves at most one rung away from `last_index`.
    """
    if buffered_duration_ms < reservoir_ms:
        optimal = catalog.lowest_index
    elif buffered_duration_ms > cushion_end_ms or cushion_end_ms <= reservoir_ms:
        optimal = catalog.highest_index
    else:
        low = catalog.lowest_bitrate
        high = catalog.highest_bitrate
        slope = (high - low) / (cushion_end_ms - reservoir_ms)
        optimal = catalog.nearest_index_at_or_above(low + slope * (buffered_duration_ms - reservoir_ms))

    if optimal in (catalog.lowest_index, catalog.highest_index):
        return optimal
    return min(max(optimal, last_index - 1), last_index + 1)

"""Default parameter combinations for sessions and simulation.

This module provides default parameter values and convenience functions
for creating AdaptationSession and StreamingEnv instances.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

from .core.catalog import RepresentationCatalog
from .core.lookahead import LookaheadTable, load_lookahead
from .core.sample import SampleMode, monotonic_ms
from .core.telemetry import DEFAULT_MAX_BUFFER_MS, PlaybackTelemetry
from .session import AdaptationSession, DecisionSink
from .sim.env import REBUF_PENALTY, SMOOTH_PENALTY, SimulatedClock, StreamingEnv
from .sim.simulator import CHUNK_DURATION_MS, StreamingSimulator
from .sim.trace import NetworkTrace


VIDEO_BIT_RATE = [300., 750., 1200., 1850., 2850., 4300.]  # Kbps, any order
TOTAL_VIDEO_CHUNKS = 48
MAX_BUFFER_MS = DEFAULT_MAX_BUFFER_MS
DEFAULT_ALGORITHM = 'dash'

TEST_TRACES = './test/'
LOG_FILE_PREFIX = './replay_results/log_sim_'


def create_lookahead_with_default(
    catalog: RepresentationCatalog,
    size_file_prefix: Optional[str] = None,
    max_chunks: int = TOTAL_VIDEO_CHUNKS,
    chunk_duration_ms: float = CHUNK_DURATION_MS,
    lowest_first: bool = True,
) -> LookaheadTable:
    """Load chunk sizes, or synthesize a constant-bitrate table without files.

    Size files are expected lowest bitrate first by default, as in the
    envivio dataset.
    """
    if size_file_prefix is None:
        return LookaheadTable.constant_bitrate(catalog, max_chunks, chunk_duration_ms)
    return load_lookahead(
        size_file_prefix,
        num_representations=len(catalog),
        max_chunks=max_chunks,
        lowest_first=lowest_first,
    )


def create_session_with_default(
    algorithm: str = DEFAULT_ALGORITHM,
    levels_kbps: Sequence[float] = VIDEO_BIT_RATE,
    lookahead: Optional[LookaheadTable] = None,
    max_buffer_ms: float = MAX_BUFFER_MS,
    sampler_mode: SampleMode = SampleMode.TRANSFER,
    sink: Optional[DecisionSink] = None,
    clock: Callable[[], float] = monotonic_ms,
    **options,
) -> AdaptationSession:
    """Create an AdaptationSession with default parameters.

    Args:
        algorithm: Registered algorithm name.
        levels_kbps: Bitrate ladder in kbps, any order.
        lookahead: Optional chunk size table.
        max_buffer_ms: Maximum buffer target.
        sampler_mode: Mode of the throughput sampler.
        sink: Callable receiving every decision.
        clock: Clock returning the current time in ms.
        **options: Algorithm config options.
    """
    catalog = RepresentationCatalog.from_kbps(levels_kbps)
    telemetry = PlaybackTelemetry(max_buffer_ms=max_buffer_ms, lookahead=lookahead, clock=clock)
    return AdaptationSession(
        catalog,
        algorithm=algorithm,
        telemetry=telemetry,
        sampler_mode=sampler_mode,
        sink=sink,
        **options,
    )


def create_env_with_default(
    cooked_time: List[float],
    cooked_bw: List[float],
    algorithm: str = DEFAULT_ALGORITHM,
    levels_kbps: Sequence[float] = VIDEO_BIT_RATE,
    size_file_prefix: Optional[str] = None,
    max_chunks: int = TOTAL_VIDEO_CHUNKS,
    chunk_duration_ms: float = CHUNK_DURATION_MS,
    max_buffer_ms: float = MAX_BUFFER_MS,
    rebuf_penalty: float = REBUF_PENALTY,
    smooth_penalty: float = SMOOTH_PENALTY,
    algorithm_options: Optional[Dict[str, Any]] = None,
    env_options: Optional[Dict[str, Any]] = None,
) -> StreamingEnv:
    """Create a StreamingEnv over one trace, with a session on a simulated clock.

    The simulator's buffer threshold equals the session's maximum buffer,
    and the session telemetry shares the simulator's lookahead table.

    Args:
        cooked_time: Trace timestamps in seconds.
        cooked_bw: Trace bandwidth in Mbps.
        algorithm: Registered algorithm name.
        levels_kbps: Bitrate ladder in kbps, any order.
        size_file_prefix: Chunk size files; None for a constant-bitrate video.
        max_chunks: Maximum number of chunks.
        chunk_duration_ms: Media duration of every chunk.
        max_buffer_ms: Maximum buffer.
        rebuf_penalty: Penalty coefficient for rebuffering.
        smooth_penalty: Penalty coefficient for bitrate changes.
        algorithm_options: Algorithm config options.
        env_options: Extra NetworkTrace kwargs (e.g. link_rtt).
    """
    clock = SimulatedClock()
    catalog = RepresentationCatalog.from_kbps(levels_kbps)
    lookahead = create_lookahead_with_default(
        catalog,
        size_file_prefix=size_file_prefix,
        max_chunks=max_chunks,
        chunk_duration_ms=chunk_duration_ms,
    )
    session = create_session_with_default(
        algorithm=algorithm,
        levels_kbps=levels_kbps,
        lookahead=lookahead,
        max_buffer_ms=max_buffer_ms,
        clock=clock,
        **(algorithm_options or {}),
    )
    simulator = StreamingSimulator(
        lookahead,
        NetworkTrace(cooked_time, cooked_bw, **(env_options or {})),
        chunk_duration_ms=chunk_duration_ms,
        buffer_thresh_ms=max_buffer_ms,
    )
    return StreamingEnv(
        simulator,
        session,
        clock,
        rebuf_penalty=rebuf_penalty,
        smooth_penalty=smooth_penalty,
    )

"""Host-facing adaptation session.

The session wires a sampler, the telemetry model and one algorithm behind
the calls a player makes: transfer progress, chunk completion, buffer
updates and the decision request. Transfer callbacks may come from the
host's network thread; they take the telemetry lock, as does select.
"""

import logging
from typing import Callable, List, Optional, Union

from .algorithm import AbstractAlgorithm, Decision, create_algorithm
from .core.catalog import RepresentationCatalog
from .core.sample import SampleMode, SwitchableSampler, monotonic_ms
from .core.telemetry import ChunkDescriptor, ChunkRecord, PlaybackTelemetry


DecisionSink = Callable[[Decision], None]


class AdaptationSession:
    """One playback session of the rate-adaptation core.

    Args:
        catalog: Representation ladder, highest bitrate first.
        algorithm: Registered algorithm name, or an algorithm instance bound
            to `telemetry`.
        telemetry: Telemetry model. If None, one is created with `clock`.
        sampler_mode: Mode of the throughput sampler.
        sink: Callable receiving every decision.
        clock: Clock returning the current time in ms.
        **options: Algorithm config options when `algorithm` is a name.
    """

    def __init__(
        self,
        catalog: RepresentationCatalog,
        algorithm: Union[str, AbstractAlgorithm] = 'dash',
        telemetry: Optional[PlaybackTelemetry] = None,
        sampler_mode: SampleMode = SampleMode.TRANSFER,
        sink: Optional[DecisionSink] = None,
        clock: Callable[[], float] = monotonic_ms,
        **options,
    ):
        self.catalog = catalog
        if isinstance(algorithm, AbstractAlgorithm):
            if telemetry is not None and algorithm.telemetry is not telemetry:
                raise ValueError("Algorithm instance must be bound to the session telemetry")
            if options:
                logging.warning(f"options are ignored for an algorithm instance: {options}")
            self.telemetry = algorithm.telemetry
            self.algorithm = algorithm
        else:
            self.telemetry = telemetry if telemetry is not None else PlaybackTelemetry(clock=clock)
            self.algorithm = create_algorithm(algorithm, catalog, self.telemetry, **options)
        self.sink = sink
        self.sampler = SwitchableSampler(
            self.telemetry.samples,
            mode=sampler_mode,
            clock=self.telemetry.clock,
        )

    # ==================== Telemetry Source ====================

    def on_transfer_start(self) -> None:
        with self.telemetry.lock:
            self.sampler.on_transfer_start()

    def on_bytes_transferred(self, bytes_transferred: int) -> None:
        with self.telemetry.lock:
            self.sampler.on_bytes_transferred(bytes_transferred)

    def on_transfer_end(self) -> None:
        with self.telemetry.lock:
            self.sampler.on_transfer_end()

    def on_loading_stopped(self) -> None:
        with self.telemetry.lock:
            self.sampler.on_loading_stopped()

    def on_chunk_completed(self, descriptor: ChunkDescriptor, arrival_time_ms: Optional[float] = None) -> ChunkRecord:
        return self.telemetry.chunk_completed(descriptor, arrival_time_ms)

    def on_buffer_update(self, buffered_duration_ms: float) -> None:
        self.telemetry.update_buffer(buffered_duration_ms)

    def on_manifest_duration(self, duration_ms: Optional[float]) -> None:
        self.telemetry.set_manifest_duration(duration_ms)

    def on_stall(self, stall_duration_ms: float) -> None:
        self.telemetry.record_stall(stall_duration_ms)

    # ==================== Decisions ====================

    def select(self, buffered_duration_ms: Optional[float] = None) -> Decision:
        """Run the algorithm and forward its decision to the sink."""
        with self.telemetry.lock:
            decision = self.algorithm.select(buffered_duration_ms)
        if self.sink is not None:
            self.sink(decision)
        return decision

    def records(self) -> List[ChunkRecord]:
        """Per-chunk statistics collected so far."""
        return self.telemetry.records()

    def clear(self) -> None:
        """Start a new session: telemetry, sampler and algorithm state are reset."""
        with self.telemetry.lock:
            self.telemetry.clear()
            self.sampler.reset()
            self.algorithm.reset()


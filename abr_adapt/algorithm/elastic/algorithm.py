"""PI-control algorithm (Elastic).

A discrete-time PI loop on the buffer error with the harmonic mean
throughput as baseline:

    I += load_s * (buffer_s - target_s)
    target_rate = harmonic_mean / (1 - k_p * buffer_s - k_i * I)

A non-positive denominator clamps the target rate to 0. Oscillation is
tolerated, not damped.
"""

from dataclasses import dataclass
from typing import Optional

from ...core.stats import harmonic_mean
from ..abc import AbstractAlgorithm


# Number of most recent samples in the harmonic mean
AVERAGE_WINDOW = 5

# Controller gains
K_P = 0.01
K_I = 0.001

MILLISECONDS_IN_SECOND = 1000.0


@dataclass(frozen=True)
class ElasticConfig:
    """Configuration of the PI-control algorithm.

    Attributes:
        average_window: Samples in the harmonic mean.
        k_p: Proportional gain (per second of buffer).
        k_i: Integral gain.
        target_buffer_ms: Buffer set-point; None uses the telemetry's
            maximum buffer.
    """
    average_window: int = AVERAGE_WINDOW
    k_p: float = K_P
    k_i: float = K_I
    target_buffer_ms: Optional[float] = None

    def __post_init__(self):
        if self.average_window <= 0:
            raise ValueError(f"average_window must be positive, got {self.average_window}")
        if self.target_buffer_ms is not None and self.target_buffer_ms < 0:
            raise ValueError(f"target_buffer_ms must be non-negative, got {self.target_buffer_ms}")


class ElasticAlgorithm(AbstractAlgorithm):
    """PI controller on buffer occupancy.

    Integrates the buffer error on every decision, chunk or not; every
    decision reports ADAPTIVE.
    """

    ADAPTIVE_ON_RECOMPUTE = True

    def __init__(self, catalog, telemetry, config: Optional[ElasticConfig] = None):
        super().__init__(catalog, telemetry, config if config is not None else ElasticConfig())

    def reset_state(self) -> None:
        self.integral = 0.0
        self.target_rate = 0.0

    @property
    def target_buffer_ms(self) -> float:
        if self.config.target_buffer_ms is not None:
            return self.config.target_buffer_ms
        return self.telemetry.max_buffer_ms

    def compute_index(self, buffered_duration_ms: float) -> Optional[int]:
        buffer_s = buffered_duration_ms / MILLISECONDS_IN_SECOND
        target_s = self.target_buffer_ms / MILLISECONDS_IN_SECOND
        load_s = self.telemetry.last_chunk_load_duration_ms / MILLISECONDS_IN_SECOND
        self.integral += load_s * (buffer_s - target_s)

        average = harmonic_mean(self.telemetry.samples.rates(self.config.average_window))
        denominator = 1 - self.config.k_p * buffer_s - self.config.k_i * self.integral
        if denominator > 0:
            self.target_rate = average / denominator
        else:
            self.target_rate = 0.0
        return self.catalog.best_index_below(self.target_rate)

"""Smoothed threshold algorithm (DASH conventional).

Keeps an exponentially weighted moving average of the throughput,
rate = w * new + (1 - w) * rate, and selects the highest bitrate strictly
below a safety fraction of it.
"""

from dataclasses import dataclass
from typing import Optional

from ..abc import AbstractAlgorithm


# Safety fraction applied to the smoothed rate before mapping
BANDWIDTH_FRACTION = 0.85

# Weight of the newest sample in the moving average
EWMA_WEIGHT = 0.2


@dataclass(frozen=True)
class DashConfig:
    """Configuration of the smoothed threshold algorithm."""
    bandwidth_fraction: float = BANDWIDTH_FRACTION
    ewma_weight: float = EWMA_WEIGHT

    def __post_init__(self):
        if not 0 < self.bandwidth_fraction <= 1:
            raise ValueError(f"bandwidth_fraction must be in (0, 1], got {self.bandwidth_fraction}")
        if not 0 < self.ewma_weight <= 1:
            raise ValueError(f"ewma_weight must be in (0, 1], got {self.ewma_weight}")


class DashAlgorithm(AbstractAlgorithm):
    """Threshold on a smoothed throughput estimate.

    Each new sample is folded into the estimate once, however many times
    select is called in between. Every recomputation reports ADAPTIVE.
    """

    ADAPTIVE_ON_RECOMPUTE = True

    def __init__(self, catalog, telemetry, config: Optional[DashConfig] = None):
        super().__init__(catalog, telemetry, config if config is not None else DashConfig())

    def reset_state(self) -> None:
        self.network_rate = 0.0
        self._folded_samples = 0

    def compute_index(self, buffered_duration_ms: float) -> Optional[int]:
        samples = self.telemetry.samples
        if samples.sample_count != self._folded_samples:
            weight = self.config.ewma_weight
            self.network_rate = weight * samples.last().bits_per_second + (1 - weight) * self.network_rate
            self._folded_samples = samples.sample_count
        return self.catalog.best_index_below(self.config.bandwidth_fraction * self.network_rate)

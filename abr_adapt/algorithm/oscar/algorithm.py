"""Predictive statistical algorithm (OSCAR-H).

Fits a Kumaraswamy distribution to the recent throughput and picks the
rate whose next chunk is unlikely to drain the buffer into its reservoir.

A chunk of duration T at rate R downloads in R * T / C for throughput C.
With probability 1 - p the throughput exceeds the p-quantile q, so the
download does not eat more than the buffer slack B - reservoir when

    R <= q * (B - reservoir) / T

The target rate is that bound, capped by a safety fraction of the fitted
mean throughput.
"""

from dataclasses import dataclass
from typing import Optional

from ...core.fit import KumaraswamyFit, kumaraswamy_fit
from ..abc import AbstractAlgorithm


# Number of most recent samples in the fit
ESTIMATION_WINDOW = 10

# Ratio of the exponential freshness weights
EXP_AVG_RATIO = 0.15

# Accepted probability of draining the buffer into the reservoir
STALL_PROBABILITY = 0.05

# Safety fraction applied to the fitted mean throughput
BANDWIDTH_SAFETY = 0.9

# Reservoir kept in the buffer, in chunks
RESERVOIR_CHUNKS = 1

# Maximum number of rungs to move up per decision
MAX_STEP_UP = 1

# Share of freshness weighting against duration weighting in the fit
FRESHNESS_WEIGHT = 1.0


@dataclass(frozen=True)
class OscarConfig:
    """Configuration of the predictive statistical algorithm."""
    estimation_window: int = ESTIMATION_WINDOW
    exp_avg_ratio: float = EXP_AVG_RATIO
    stall_probability: float = STALL_PROBABILITY
    bandwidth_safety: float = BANDWIDTH_SAFETY
    reservoir_chunks: float = RESERVOIR_CHUNKS
    max_step_up: int = MAX_STEP_UP
    freshness_weight: float = FRESHNESS_WEIGHT

    def __post_init__(self):
        if self.estimation_window < 2:
            raise ValueError(f"estimation_window must be at least 2, got {self.estimation_window}")
        if not 0 < self.exp_avg_ratio <= 1:
            raise ValueError(f"exp_avg_ratio must be in (0, 1], got {self.exp_avg_ratio}")
        if not 0 < self.stall_probability < 1:
            raise ValueError(f"stall_probability must be in (0, 1), got {self.stall_probability}")
        if not 0 < self.bandwidth_safety <= 1:
            raise ValueError(f"bandwidth_safety must be in (0, 1], got {self.bandwidth_safety}")
        if self.reservoir_chunks < 0:
            raise ValueError(f"reservoir_chunks must be non-negative, got {self.reservoir_chunks}")
        if self.max_step_up < 1:
            raise ValueError(f"max_step_up must be at least 1, got {self.max_step_up}")
        if not 0 <= self.freshness_weight <= 1:
            raise ValueError(f"freshness_weight must be in [0, 1], got {self.freshness_weight}")


class OscarAlgorithm(AbstractAlgorithm):
    """OSCAR-H style predictive adaptation.

    Recomputes once per completed chunk; every recomputation reports
    ADAPTIVE. With fewer than two samples the fit is skipped and the target
    is the safety fraction of the last sample's rate.

    Attributes:
        fit: Distribution of the last recomputation, None if skipped.
        target_rate: Target rate in bps of the last recomputation.
    """

    ADAPTIVE_ON_RECOMPUTE = True

    def __init__(self, catalog, telemetry, config: Optional[OscarConfig] = None):
        super().__init__(catalog, telemetry, config if config is not None else OscarConfig())

    def reset_state(self) -> None:
        self.fit: Optional[KumaraswamyFit] = None
        self.target_rate = 0.0

    def compute_target_rate(self, buffered_duration_ms: float) -> float:
        samples = self.telemetry.samples
        window = self.config.estimation_window
        self.fit = kumaraswamy_fit(
            samples.rates(window),
            self.config.exp_avg_ratio,
            durations=samples.durations(window),
            freshness_weight=self.config.freshness_weight,
        )
        if self.fit is None:
            return self.config.bandwidth_safety * samples.last().bits_per_second

        chunk_duration_ms = self.telemetry.last_chunk_duration_ms
        slack_ms = max(buffered_duration_ms - self.config.reservoir_chunks * chunk_duration_ms, 0.0)
        stall_bound = self.fit.quantile(self.config.stall_probability) * slack_ms / chunk_duration_ms
        return min(self.config.bandwidth_safety * self.fit.mean(), stall_bound)

    def compute_index(self, buffered_duration_ms: float) -> Optional[int]:
        if not self.chunk_changed():
            return None
        self.target_rate = self.compute_target_rate(buffered_duration_ms)
        index = self.catalog.best_index_below(self.target_rate)
        return max(index, self.decision.index - self.config.max_step_up)

"""Basic threshold algorithm.

Selects the highest bitrate strictly below the rate of the most recent
throughput sample, with no smoothing.
"""

from typing import Optional

from ..abc import AbstractAlgorithm


class BasicAlgorithm(AbstractAlgorithm):
    """Threshold on the last throughput sample.

    Reports ADAPTIVE only when the selected index changes.
    """

    ADAPTIVE_ON_RECOMPUTE = False

    def compute_index(self, buffered_duration_ms: float) -> Optional[int]:
        rate = self.telemetry.last_sample.bits_per_second
        return self.catalog.best_index_below(rate)

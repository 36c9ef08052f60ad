"""BBA2 (buffer-reservoir heuristic) algorithm.

Reference:
    Huang et al., "A Buffer-Based Approach to Rate Adaptation", SIGCOMM 2014.
"""

from .algorithm import Bba2Algorithm, Bba2Config
from .reservoir import bba1_rate_index, compute_reservoir_ms
from ..registry import register

register("bba2", Bba2Algorithm, Bba2Config)

__all__ = [
    'Bba2Algorithm',
    'Bba2Config',
    'bba1_rate_index',
    'compute_reservoir_ms',
]

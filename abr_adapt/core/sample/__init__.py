"""Throughput sample collection."""

from .store import ThroughputSample, SampleStore, monotonic_ms
from .sampler import SampleMode, SwitchableSampler

__all__ = [
    'ThroughputSample',
    'SampleStore',
    'monotonic_ms',
    'SampleMode',
    'SwitchableSampler',
]

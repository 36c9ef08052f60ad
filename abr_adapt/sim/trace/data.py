"""Network trace data classes."""

from typing import List, Tuple
from dataclasses import dataclass

# Fewest samples a trace needs to describe one bandwidth interval
MIN_TRACE_SAMPLES = 2


@dataclass
class TraceData:
    """Container for loaded traces.

    Each trace is a pair of equal-length columns: timestamps in seconds,
    non-decreasing, and bandwidth in Mbps.
    """
    all_cooked_time: List[List[float]]
    all_cooked_bw: List[List[float]]
    all_file_names: List[str]

    def __post_init__(self):
        if not len(self.all_cooked_time) == len(self.all_cooked_bw) == len(self.all_file_names):
            raise ValueError("Trace columns and file names must have the same length")
        for cooked_time, cooked_bw, file_name in self:
            if len(cooked_time) != len(cooked_bw):
                raise ValueError(
                    f"Trace {file_name}: {len(cooked_time)} timestamps but {len(cooked_bw)} bandwidths"
                )
            if len(cooked_time) < MIN_TRACE_SAMPLES:
                raise ValueError(f"Trace {file_name} needs at least {MIN_TRACE_SAMPLES} samples")
            if any(b < a for a, b in zip(cooked_time, cooked_time[1:])):
                raise ValueError(f"Trace {file_name} timestamps must be non-decreasing")

    def __len__(self) -> int:
        return len(self.all_file_names)

    def __getitem__(self, idx: int) -> Tuple[List[float], List[float], str]:
        return (
            self.all_cooked_time[idx],
            self.all_cooked_bw[idx],
            self.all_file_names[idx]
        )

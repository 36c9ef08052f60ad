"""Network trace file parsing.

A trace file holds one sample per line: a timestamp in seconds and a
bandwidth in Mbps, separated by whitespace. Extra columns are ignored.
Blank lines, lines starting with '#' and lines with a single column are
skipped.
"""

import os
from typing import List, Optional, Tuple

from .data import TraceData

COMMENT_PREFIX = '#'


def parse_trace_file(file_path: str) -> Tuple[List[float], List[float]]:
    """Read the timestamp and bandwidth columns of one trace file.

    Raises:
        ValueError: If a column holds a value that is not a number.
    """
    cooked_time = []
    cooked_bw = []
    with open(file_path, 'r') as f:
        for line_number, line in enumerate(f, start=1):
            if line.lstrip().startswith(COMMENT_PREFIX):
                continue
            parse = line.split()
            if len(parse) < 2:
                continue
            try:
                timestamp, bandwidth = float(parse[0]), float(parse[1])
            except ValueError:
                raise ValueError(f"{file_path}:{line_number}: expected two numbers, got {line.strip()!r}")
            cooked_time.append(timestamp)
            cooked_bw.append(bandwidth)
    return cooked_time, cooked_bw


def list_trace_files(trace_folder: str) -> List[str]:
    """Regular, non-hidden files of a folder in name order."""
    return [
        name for name in sorted(os.listdir(trace_folder))
        if not name.startswith('.') and os.path.isfile(os.path.join(trace_folder, name))
    ]


def load_trace(trace_folder: str, max_traces: Optional[int] = None) -> TraceData:
    """Load network bandwidth traces from a folder.

    Files are loaded in name order so that replays are deterministic.

    Args:
        trace_folder: Path to folder containing trace files.
        max_traces: Load at most this many traces, None for all.

    Returns:
        TraceData object containing all loaded traces.
    """
    file_names = list_trace_files(trace_folder)
    if max_traces is not None:
        if max_traces <= 0:
            raise ValueError(f"max_traces must be positive, got {max_traces}")
        file_names = file_names[:max_traces]
    if not file_names:
        raise ValueError(f"No valid trace files found in {trace_folder}")
    columns = [parse_trace_file(os.path.join(trace_folder, name)) for name in file_names]
    return TraceData(
        all_cooked_time=[cooked_time for cooked_time, _ in columns],
        all_cooked_bw=[cooked_bw for _, cooked_bw in columns],
        all_file_names=file_names,
    )

"""Network traces for the streaming simulator."""

from .data import TraceData
from .loader import load_trace, parse_trace_file
from .network import NetworkTrace

__all__ = [
    'TraceData',
    'load_trace',
    'parse_trace_file',
    'NetworkTrace',
]

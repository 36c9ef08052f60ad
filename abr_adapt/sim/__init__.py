"""Trace-driven simulation host for the rate-adaptation core."""

from .env import Observation, SimulatedClock, StreamingEnv
from .simulator import StepResult, StreamingSimulator
from .trace import NetworkTrace, TraceData, load_trace

__all__ = [
    'Observation',
    'SimulatedClock',
    'StreamingEnv',
    'StepResult',
    'StreamingSimulator',
    'NetworkTrace',
    'TraceData',
    'load_trace',
]

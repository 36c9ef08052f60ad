"""Smoothed threshold (DASH conventional) algorithm."""

from .algorithm import DashAlgorithm, DashConfig
from ..registry import register

register("dash", DashAlgorithm, DashConfig)

__all__ = [
    'DashAlgorithm',
    'DashConfig',
]

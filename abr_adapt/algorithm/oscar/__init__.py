"""OSCAR-H (predictive statistical) algorithm."""

from .algorithm import OscarAlgorithm, OscarConfig
from ..registry import register

register("oscar-h", OscarAlgorithm, OscarConfig)

__all__ = [
    'OscarAlgorithm',
    'OscarConfig',
]

"""Basic threshold algorithm."""

from .algorithm import BasicAlgorithm
from ..registry import register

register("basic", BasicAlgorithm)

__all__ = [
    'BasicAlgorithm',
]

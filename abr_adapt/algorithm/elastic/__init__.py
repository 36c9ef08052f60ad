"""PI-control (Elastic) algorithm."""

from .algorithm import ElasticAlgorithm, ElasticConfig
from ..registry import register

register("elastic", ElasticAlgorithm, ElasticConfig)

__all__ = [
    'ElasticAlgorithm',
    'ElasticConfig',
]

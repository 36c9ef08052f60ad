"""Rate-adaptation algorithms.

This module provides the shared decision contract and the registered
algorithm implementations.
"""

from .abc import AbstractAlgorithm, Decision, Reason
from .registry import create_algorithm, create_config, register, get_available_algorithms

# Import algorithm implementations to trigger registration
from . import basic  # noqa: F401
from . import dash  # noqa: F401
from . import elastic  # noqa: F401
from . import bba2  # noqa: F401
from . import oscar  # noqa: F401

__all__ = [
    'AbstractAlgorithm',
    'Decision',
    'Reason',
    'create_algorithm',
    'create_config',
    'register',
    'get_available_algorithms',
    'basic',
    'dash',
    'elastic',
    'bba2',
    'oscar',
]

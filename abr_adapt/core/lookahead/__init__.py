"""Lookahead chunk size table."""

from .data import LookaheadTable
from .loader import load_lookahead

__all__ = [
    'LookaheadTable',
    'load_lookahead',
]

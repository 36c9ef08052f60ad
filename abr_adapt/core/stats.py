"""Statistics over windows of throughput rates.

Every function takes a window of rates ordered oldest first (as returned by
SampleStore.rates) and returns None for an empty window instead of dividing
by zero. Callers check that data is available before relying on a value.
"""

from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray


Window = Union[Sequence[float], NDArray[np.float64]]


def _as_array(rates: Window) -> NDArray[np.float64]:
    return np.asarray(rates, dtype=np.float64)


def arithmetic_mean(rates: Window) -> Optional[float]:
    """Pythagorean arithmetic mean."""
    r = _as_array(rates)
    if r.size == 0:
        return None
    return float(np.sum(r) / r.size)


def arithmetic_variance(rates: Window) -> Optional[float]:
    """Unbiased sample variance, 0 for a single sample."""
    r = _as_array(rates)
    if r.size == 0:
        return None
    if r.size == 1:
        return 0.0
    mean = np.sum(r) / r.size
    return float(np.sum((mean - r) ** 2) / (r.size - 1))


def harmonic_mean(rates: Window) -> Optional[float]:
    """Pythagorean harmonic mean.

    A zero rate in the window drives the harmonic mean to 0.
    """
    r = _as_array(rates)
    if r.size == 0:
        return None
    if np.any(r <= 0):
        return 0.0
    return float(r.size / np.sum(1.0 / r))


def harmonic_variance(rates: Window) -> Optional[float]:
    """Jackknife variance of the harmonic mean.

    Each leave-one-out harmonic mean is computed and their spread is scaled
    by (k-1)/k. Returns 0 for a single sample.
    """
    r = _as_array(rates)
    if r.size == 0:
        return None
    if r.size == 1 or np.any(r <= 0):
        return 0.0
    k = r.size
    reciprocals = 1.0 / r
    reduced = (k - 1) / (np.sum(reciprocals) - reciprocals)
    return float((k - 1) / k * np.sum((np.mean(reduced) - reduced) ** 2))


def coefficient_of_variation(rates: Window) -> Optional[float]:
    """Standard deviation over arithmetic mean; None if the mean is 0."""
    mean = arithmetic_mean(rates)
    if mean is None or mean == 0:
        return None
    return float(np.sqrt(arithmetic_variance(rates)) / mean)


def exponential_weights(k: int, ratio: float) -> NDArray[np.float64]:
    """Normalized exponential weights for a window of k samples.

    The i-th most recent sample (i = 0 for the newest) gets
    ratio * (1 - ratio)**i / (1 - (1 - ratio)**k), so the weights sum to 1.
    The returned array is ordered oldest first, matching the window.

    Raises:
        ValueError: If ratio is outside (0, 1].
    """
    if not 0 < ratio <= 1:
        raise ValueError(f"Exponential ratio must be in (0, 1], got {ratio}")
    if k <= 0:
        return np.zeros(0, dtype=np.float64)
    recency = np.arange(k - 1, -1, -1, dtype=np.float64)
    weight_sum = 1 - (1 - ratio) ** k
    return ratio * (1 - ratio) ** recency / weight_sum


def exponential_mean(rates: Window, ratio: float) -> Optional[float]:
    """Exponentially weighted mean favouring recent samples."""
    r = _as_array(rates)
    if r.size == 0:
        return None
    return float(np.dot(exponential_weights(r.size, ratio), r))


def exponential_variance(rates: Window, ratio: float, mean: Optional[float] = None) -> Optional[float]:
    """Exponentially weighted variance, scaled by k/(k-1).

    Args:
        rates: Window of rates, oldest first.
        ratio: Exponential ratio in (0, 1].
        mean: Precomputed exponential mean; computed when omitted.
    """
    r = _as_array(rates)
    if r.size == 0:
        return None
    if r.size == 1:
        return 0.0
    if mean is None:
        mean = exponential_mean(r, ratio)
    weights = exponential_weights(r.size, ratio)
    return float(r.size * np.dot(weights, (mean - r) ** 2) / (r.size - 1))


def minimum(rates: Window) -> Optional[float]:
    """Smallest rate in the window."""
    r = _as_array(rates)
    if r.size == 0:
        return None
    return float(np.min(r))

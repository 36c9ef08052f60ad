"""Kumaraswamy distribution fit for throughput windows.

Rates are normalized into (0, 1) by the window maximum times 1.01 and fit
with a two-parameter Kumaraswamy distribution, F(x) = 1 - (1 - x**a)**b.
The first shape parameter is found by bisection on a weighted
profile-likelihood score S(a); the second follows in closed form.

The bracket limits (1e-4 and 2000) and the 1e-3 tolerance are empirical.
On a window of identical rates the bisection ends at the upper limit and
the second parameter at its cap; the fitted mean stays close to the rate.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .stats import Window, exponential_weights


# Normalization headroom over the window maximum
NORMALIZATION_HEADROOM = 1.01

# Bisection limits and tolerance for the first shape parameter
SHAPE1_LOWER_LIMIT = 0.0001
SHAPE1_UPPER_LIMIT = 2000.0
SHAPE1_TOLERANCE = 0.001

# Second shape parameter guards
SHAPE2_ZERO_SUBSTITUTE = 1e-5
SHAPE2_MAX = 1e5

# Numerical guards for logs and divisions
EPSILON = 1e-12
TINY = 1e-300


@dataclass(frozen=True)
class KumaraswamyFit:
    """Fitted Kumaraswamy parameters.

    Attributes:
        shape1: First shape parameter (a).
        shape2: Second shape parameter (b).
        normalization_max: Rate in bps that maps to 1.0 in normalized space.
    """
    shape1: float
    shape2: float
    normalization_max: float

    def cdf(self, rate: float) -> float:
        """Probability that the throughput is at most `rate` (bps)."""
        x = rate / self.normalization_max
        if x <= 0:
            return 0.0
        if x >= 1:
            return 1.0
        return 1.0 - (1.0 - x ** self.shape1) ** self.shape2

    def quantile(self, probability: float) -> float:
        """Throughput rate (bps) below which `probability` of the mass lies."""
        if not 0 <= probability <= 1:
            raise ValueError(f"probability must be in [0, 1], got {probability}")
        x = (1.0 - (1.0 - probability) ** (1.0 / self.shape2)) ** (1.0 / self.shape1)
        return x * self.normalization_max

    def mean(self) -> float:
        """Expected throughput rate in bps: b * B(1 + 1/a, b)."""
        log_mean = (
            math.log(self.shape2)
            + math.lgamma(1.0 + 1.0 / self.shape1)
            + math.lgamma(self.shape2)
            - math.lgamma(1.0 + 1.0 / self.shape1 + self.shape2)
        )
        return math.exp(log_mean) * self.normalization_max


def compute_score(samples: NDArray[np.float64], weights: NDArray[np.float64], shape1: float) -> float:
    """Weighted profile-likelihood score S(shape1).

    S is positive below the fitted shape1 and negative above it.
    """
    y = np.clip(samples ** shape1, TINY, 1.0 - EPSILON)
    log_y = np.log(y)
    y_compl = 1.0 - y
    t1 = np.sum(weights * log_y / y_compl)
    t2 = np.sum(weights * log_y / y_compl * y)
    t3 = np.sum(weights * np.log(y_compl))
    if abs(t3) < EPSILON:
        t3 = -EPSILON
    return float(1.0 + t1 + t2 / t3)


def sample_weights(
    k: int,
    exp_avg_ratio: float,
    durations: Optional[Window] = None,
    freshness_weight: float = 1.0,
) -> NDArray[np.float64]:
    """Blend of exponential freshness weights and duration weights.

    With freshness_weight = 1 only freshness counts; with 0 each sample
    weighs by its share of the total sampled time (uniform if durations are
    not given).
    """
    if not 0 <= freshness_weight <= 1:
        raise ValueError(f"freshness_weight must be in [0, 1], got {freshness_weight}")
    fresh = exponential_weights(k, exp_avg_ratio)
    if durations is None:
        duration_weights = np.full(k, 1.0 / k)
    else:
        d = np.asarray(durations, dtype=np.float64)
        total = np.sum(d)
        duration_weights = d / total if total > 0 else np.full(k, 1.0 / k)
    return freshness_weight * fresh + (1.0 - freshness_weight) * duration_weights


def kumaraswamy_fit(
    rates: Window,
    exp_avg_ratio: float,
    durations: Optional[Window] = None,
    freshness_weight: float = 1.0,
) -> Optional[KumaraswamyFit]:
    """Fit a Kumaraswamy distribution to a window of rates.

    Args:
        rates: Throughput rates in bps, oldest first.
        exp_avg_ratio: Ratio of the exponential freshness weights.
        durations: Sample durations in ms, aligned with `rates`, used for
            duration weighting.
        freshness_weight: Share of freshness weighting in [0, 1].

    Returns:
        The fit, or None when fewer than two positive-rate samples exist.
    """
    r = np.asarray(rates, dtype=np.float64)
    k = r.size
    if k < 2:
        return None
    max_rate = float(np.max(r))
    if max_rate <= 0:
        return None

    normalization_max = max_rate * NORMALIZATION_HEADROOM
    samples = np.clip(r / normalization_max, EPSILON, 1.0 - EPSILON)
    weights = sample_weights(k, exp_avg_ratio, durations, freshness_weight)

    avg = float(np.dot(weights, samples))
    var = float(k * np.dot(weights, (samples - avg) ** 2) / (k - 1))
    var = max(var, EPSILON)

    # method-of-moments guess from the matching beta distribution
    check_term = avg * (1 - avg) / var
    if check_term > 1:
        initial = avg * (check_term - 1)
    else:
        initial = 1.0
    initial = min(max(initial, SHAPE1_LOWER_LIMIT), SHAPE1_UPPER_LIMIT)

    shape1_min = initial
    s_min = compute_score(samples, weights, shape1_min)
    while s_min < 0 and shape1_min > SHAPE1_LOWER_LIMIT:
        shape1_min = shape1_min / 2
        s_min = compute_score(samples, weights, shape1_min)

    shape1_max = initial
    s_max = compute_score(samples, weights, shape1_max)
    while s_max > 0 and shape1_max < SHAPE1_UPPER_LIMIT:
        shape1_max = shape1_max * 2
        s_max = compute_score(samples, weights, shape1_max)

    while shape1_max - shape1_min > SHAPE1_TOLERANCE:
        shape1 = (shape1_max + shape1_min) / 2
        if compute_score(samples, weights, shape1) > 0:
            shape1_min = shape1
        else:
            shape1_max = shape1
    shape1 = (shape1_max + shape1_min) / 2

    log_sum = float(np.sum(weights * np.log(np.clip(1.0 - samples ** shape1, TINY, 1.0))))
    if log_sum == 0:
        shape2 = SHAPE2_ZERO_SUBSTITUTE
    else:
        shape2 = min(-1.0 / log_sum, SHAPE2_MAX)

    return KumaraswamyFit(shape1=shape1, shape2=shape2, normalization_max=normalization_max)

"""Unit tests for the statistics over throughput windows."""

import unittest

import numpy as np

from abr_adapt.core import stats


# ==============================================================================
# TEST CLASS 1: Means and variances
# ==============================================================================

class TestMeansAndVariances(unittest.TestCase):
    """Test the arithmetic, harmonic and exponential statistics."""

    def test_empty_window_returns_none(self):
        """Every statistic returns None for an empty window."""
        for func in (stats.arithmetic_mean, stats.arithmetic_variance,
                     stats.harmonic_mean, stats.harmonic_variance,
                     stats.coefficient_of_variation, stats.minimum):
            with self.subTest(func=func.__name__):
                self.assertIsNone(func([]))
        self.assertIsNone(stats.exponential_mean([], 0.5))
        self.assertIsNone(stats.exponential_variance([], 0.5))

    def test_arithmetic(self):
        self.assertAlmostEqual(stats.arithmetic_mean([1.0, 2.0, 3.0]), 2.0)
        self.assertAlmostEqual(stats.arithmetic_variance([1.0, 2.0, 3.0]), 1.0)
        self.assertEqual(stats.arithmetic_variance([5.0]), 0.0)

    def test_harmonic_mean(self):
        self.assertAlmostEqual(stats.harmonic_mean([1.0, 2.0, 4.0]), 3 / 1.75)
        self.assertEqual(stats.harmonic_mean([1.0, 0.0]), 0.0)

    def test_harmonic_not_above_arithmetic(self):
        """AM-HM inequality holds for any non-empty window of positive rates."""
        rng = np.random.default_rng(42)
        windows = [[1e6], [1e6, 1e6], [3e5, 3e6], list(rng.uniform(1e5, 1e7, size=20))]
        for _ in range(50):
            windows.append(list(rng.uniform(1.0, 1e8, size=rng.integers(1, 30))))
        for window in windows:
            with self.subTest(size=len(window)):
                self.assertLessEqual(stats.harmonic_mean(window),
                                     stats.arithmetic_mean(window) * (1 + 1e-12))

    def test_harmonic_variance(self):
        self.assertAlmostEqual(stats.harmonic_variance([2e6, 2e6, 2e6]), 0.0)
        self.assertEqual(stats.harmonic_variance([2e6]), 0.0)
        self.assertGreater(stats.harmonic_variance([1e6, 2e6, 4e6]), 0.0)

    def test_coefficient_of_variation(self):
        self.assertAlmostEqual(stats.coefficient_of_variation([2.0, 2.0]), 0.0)
        self.assertIsNone(stats.coefficient_of_variation([0.0, 0.0]))
        self.assertAlmostEqual(stats.coefficient_of_variation([1.0, 2.0, 3.0]), 0.5)

    def test_minimum(self):
        self.assertEqual(stats.minimum([3.0, 1.0, 2.0]), 1.0)


# ==============================================================================
# TEST CLASS 2: Exponential weights
# ==============================================================================

class TestExponentialWeights(unittest.TestCase):
    """Test the normalized exponential weights."""

    def test_weights_sum_to_one(self):
        """Weights sum to 1 for any window size and ratio in (0, 1]."""
        for ratio in (0.01, 0.15, 0.5, 0.99, 1.0):
            for k in (1, 2, 5, 20, 100):
                with self.subTest(ratio=ratio, k=k):
                    weights = stats.exponential_weights(k, ratio)
                    self.assertEqual(len(weights), k)
                    self.assertAlmostEqual(float(np.sum(weights)), 1.0, places=12)

    def test_newest_sample_weighs_most(self):
        """The window is oldest first, so the last weight is the largest."""
        weights = stats.exponential_weights(5, 0.3)
        self.assertTrue(np.all(np.diff(weights) > 0))
        self.assertAlmostEqual(weights[-1], 0.3 / (1 - 0.7 ** 5))

    def test_ratio_out_of_range(self):
        for ratio in (0.0, -0.1, 1.5):
            with self.subTest(ratio=ratio):
                with self.assertRaises(ValueError):
                    stats.exponential_weights(3, ratio)

    def test_exponential_mean_and_variance(self):
        self.assertAlmostEqual(stats.exponential_mean([4e6] * 6, 0.2), 4e6)
        self.assertAlmostEqual(stats.exponential_variance([4e6] * 6, 0.2), 0.0)
        self.assertEqual(stats.exponential_variance([4e6], 0.2), 0.0)
        # ratio 1 keeps only the newest sample
        self.assertAlmostEqual(stats.exponential_mean([1.0, 2.0, 9.0], 1.0), 9.0)

    def test_exponential_mean_favours_recent(self):
        rising = [1.0, 2.0, 3.0, 4.0]
        self.assertGreater(stats.exponential_mean(rising, 0.5), stats.arithmetic_mean(rising))


if __name__ == '__main__':
    unittest.main()

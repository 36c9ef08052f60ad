"""Unit tests for the rate-adaptation algorithms and their registry.

Every algorithm runs on the ladder [3000, 1500, 750, 300] kbps, so index 0
is 3 Mbps and index 3 (the lowest) is 300 kbps.
"""

import unittest

from abr_adapt.algorithm import (
    AbstractAlgorithm,
    Decision,
    Reason,
    create_algorithm,
    create_config,
    get_available_algorithms,
    register,
)
from abr_adapt.algorithm.bba2 import Bba2Algorithm, bba1_rate_index, compute_reservoir_ms
from abr_adapt.algorithm.dash import DashAlgorithm
from abr_adapt.algorithm.elastic import ElasticAlgorithm
from abr_adapt.algorithm.oscar import OscarAlgorithm
from abr_adapt.core.catalog import RepresentationCatalog
from abr_adapt.core.lookahead import LookaheadTable
from abr_adapt.core.telemetry import ChunkDescriptor, PlaybackTelemetry


LEVELS_KBPS = [3000, 1500, 750, 300]
CHUNK_DURATION_MS = 4000.0
ALGORITHMS = ["basic", "dash", "elastic", "bba2", "oscar-h"]


def make_catalog() -> RepresentationCatalog:
    return RepresentationCatalog.from_kbps(LEVELS_KBPS)


def add_sample(telemetry: PlaybackTelemetry, rate_bps: float, duration_ms: float = 1000.0) -> None:
    """Report one throughput sample of the given rate."""
    telemetry.sample_completed(int(rate_bps * duration_ms / 1000.0), duration_ms, arrival_time_ms=0.0)


def complete_chunk(telemetry: PlaybackTelemetry, chunk_index: int, bitrate: int,
                   byte_size: int = None, load_duration_ms: float = 1000.0,
                   duration_ms: float = CHUNK_DURATION_MS) -> None:
    """Report a chunk of a constant-bitrate encode, unless a size is given."""
    if byte_size is None:
        byte_size = int(bitrate * duration_ms / 1000.0 / 8)
    telemetry.chunk_completed(ChunkDescriptor(
        chunk_index=chunk_index,
        representation_bitrate=bitrate,
        byte_size=byte_size,
        duration_ms=duration_ms,
        load_duration_ms=load_duration_ms,
    ), arrival_time_ms=0.0)


# ==============================================================================
# TEST CLASS 1: Shared decision contract
# ==============================================================================

class TestDecisionContract(unittest.TestCase):
    """Test the behavior every registered algorithm shares."""

    def setUp(self):
        self.catalog = make_catalog()

    def make(self, name, **kwargs):
        telemetry = PlaybackTelemetry(**kwargs)
        return create_algorithm(name, self.catalog, telemetry), telemetry

    def test_registered_algorithms(self):
        for name in ALGORITHMS:
            with self.subTest(name=name):
                self.assertIn(name, get_available_algorithms())

    def test_no_data_selects_lowest(self):
        for name in ALGORITHMS:
            with self.subTest(name=name):
                algorithm, telemetry = self.make(name)
                self.assertEqual(algorithm.select(), Decision(3, Reason.INITIAL))

                # a chunk alone is not enough
                complete_chunk(telemetry, 0, 300000)
                self.assertEqual(algorithm.select(), Decision(3, Reason.INITIAL))

    def test_degenerate_chunk_keeps_decision(self):
        for name in ALGORITHMS:
            with self.subTest(name=name):
                algorithm, telemetry = self.make(name)
                add_sample(telemetry, 24e6)
                complete_chunk(telemetry, 0, 1500000)
                first = algorithm.select(buffered_duration_ms=4000.0)

                add_sample(telemetry, 100e3)
                complete_chunk(telemetry, 1, 1500000, byte_size=0)
                self.assertEqual(algorithm.select(buffered_duration_ms=4000.0), first)

                complete_chunk(telemetry, 2, 1500000, duration_ms=0.0)
                self.assertEqual(algorithm.select(buffered_duration_ms=4000.0), first)

    def test_reset(self):
        for name in ALGORITHMS:
            with self.subTest(name=name):
                algorithm, telemetry = self.make(name)
                add_sample(telemetry, 24e6)
                add_sample(telemetry, 24e6)
                complete_chunk(telemetry, 0, 1500000)
                algorithm.select(buffered_duration_ms=20000.0)
                algorithm.reset()
                self.assertEqual(algorithm.decision, Decision(3, Reason.INITIAL))

    def test_selected_index_in_range(self):
        for name in ALGORITHMS:
            with self.subTest(name=name):
                algorithm, telemetry = self.make(name)
                for i, rate in enumerate([1e5, 5e7, 2e6, 8e5, 3e6, 1e4]):
                    add_sample(telemetry, rate)
                    complete_chunk(telemetry, i, 750000)
                    decision = algorithm.select(buffered_duration_ms=4000.0 * i)
                    self.assertTrue(0 <= decision.index < len(self.catalog))

    def test_zero_rate_sample(self):
        """A sample that delivered nothing still yields a valid decision."""
        for name in ALGORITHMS:
            with self.subTest(name=name):
                algorithm, telemetry = self.make(name)
                telemetry.sample_completed(0, 1000.0, arrival_time_ms=0.0)
                complete_chunk(telemetry, 0, 1500000)
                decision = algorithm.select(buffered_duration_ms=4000.0)
                self.assertIsInstance(decision, Decision)
                self.assertTrue(0 <= decision.index < len(self.catalog))

    def test_buffer_argument_updates_telemetry(self):
        algorithm, telemetry = self.make("basic")
        algorithm.select(buffered_duration_ms=1234.0)
        self.assertEqual(telemetry.buffered_duration_ms, 1234.0)


# ==============================================================================
# TEST CLASS 2: Registry
# ==============================================================================

class TestRegistry(unittest.TestCase):
    """Test creating algorithms and configs by name."""

    def test_unknown_algorithm(self):
        with self.assertRaises(ValueError):
            create_algorithm("mpc", make_catalog(), PlaybackTelemetry())

    def test_options_reach_config(self):
        algorithm = create_algorithm("dash", make_catalog(), PlaybackTelemetry(), bandwidth_fraction=0.5)
        self.assertIsInstance(algorithm, DashAlgorithm)
        self.assertEqual(algorithm.config.bandwidth_fraction, 0.5)

    def test_unknown_option_warns(self):
        with self.assertLogs(level='WARNING') as logs:
            config = create_config("dash", no_such_option=1)
        self.assertEqual(config.bandwidth_fraction, 0.85)
        self.assertIn("no_such_option", logs.output[0])

        with self.assertLogs(level='WARNING'):
            self.assertIsNone(create_config("basic", bandwidth_fraction=0.5))

    def test_invalid_config_values(self):
        cases = [
            ("dash", {"bandwidth_fraction": 0.0}),
            ("dash", {"ewma_weight": 1.5}),
            ("elastic", {"average_window": 0}),
            ("elastic", {"target_buffer_ms": -1.0}),
            ("bba2", {"cap_fraction": 1.2}),
            ("bba2", {"reservoir_window_factor": 0}),
            ("oscar-h", {"stall_probability": 1.0}),
            ("oscar-h", {"estimation_window": 1}),
            ("oscar-h", {"freshness_weight": 2.0}),
        ]
        for name, options in cases:
            with self.subTest(name=name, options=options):
                with self.assertRaises(ValueError):
                    create_algorithm(name, make_catalog(), PlaybackTelemetry(), **options)

    def test_register_rejects_bad_classes(self):
        with self.assertRaises(ValueError):
            register("not-an-algorithm", object)

        class NoConfig(AbstractAlgorithm):
            def compute_index(self, buffered_duration_ms):
                return None

        with self.assertRaises(ValueError):
            register("bad-config", NoConfig, dict)


# ==============================================================================
# TEST CLASS 3: Basic threshold
# ==============================================================================

class TestBasicAlgorithm(unittest.TestCase):
    """Test the unsmoothed threshold on the last sample."""

    def setUp(self):
        self.telemetry = PlaybackTelemetry()
        self.algorithm = create_algorithm("basic", make_catalog(), self.telemetry)

    def test_threshold_on_last_sample(self):
        add_sample(self.telemetry, 2e6)
        complete_chunk(self.telemetry, 0, 300000)
        self.assertEqual(self.algorithm.select(), Decision(1, Reason.ADAPTIVE))

        add_sample(self.telemetry, 200e3)
        self.assertEqual(self.algorithm.select(), Decision(3, Reason.ADAPTIVE))

    def test_unchanged_index_keeps_initial_reason(self):
        add_sample(self.telemetry, 200e3)
        complete_chunk(self.telemetry, 0, 300000)
        self.assertEqual(self.algorithm.select(), Decision(3, Reason.INITIAL))


# ==============================================================================
# TEST CLASS 4: Smoothed threshold
# ==============================================================================

class TestDashAlgorithm(unittest.TestCase):
    """Test the moving-average threshold."""

    def setUp(self):
        self.telemetry = PlaybackTelemetry()
        self.algorithm = create_algorithm("dash", make_catalog(), self.telemetry)
        complete_chunk(self.telemetry, 0, 300000)

    def test_converges_to_rung_below_fraction(self):
        """0.85 * (1 - 0.8**n) * 2 Mbps passes 750 kbps at n = 3 and 1.5 Mbps at n = 10."""
        expected = [3, 3] + [2] * 7 + [1]
        for n, index in enumerate(expected, start=1):
            add_sample(self.telemetry, 2e6)
            decision = self.algorithm.select()
            with self.subTest(samples=n):
                self.assertEqual(decision, Decision(index, Reason.ADAPTIVE))
        self.assertAlmostEqual(self.algorithm.network_rate, 2e6 * (1 - 0.8 ** 10), places=3)

    def test_sample_folded_once(self):
        add_sample(self.telemetry, 2e6)
        self.algorithm.select()
        self.algorithm.select()
        self.algorithm.select()
        self.assertAlmostEqual(self.algorithm.network_rate, 0.4e6)

    def test_every_recompute_is_adaptive(self):
        add_sample(self.telemetry, 100e3)
        self.assertEqual(self.algorithm.select(), Decision(3, Reason.ADAPTIVE))


# ==============================================================================
# TEST CLASS 5: PI control
# ==============================================================================

class TestElasticAlgorithm(unittest.TestCase):
    """Test the PI controller on the buffer level."""

    def setUp(self):
        self.telemetry = PlaybackTelemetry()
        self.catalog = make_catalog()

    def run_chunks(self, algorithm, n, buffer_ms=20000.0):
        decisions = []
        for i in range(n):
            add_sample(self.telemetry, 1e6)
            complete_chunk(self.telemetry, i, 750000, load_duration_ms=1000.0)
            decisions.append(algorithm.select(buffered_duration_ms=buffer_ms))
        return decisions

    def test_integral_and_target(self):
        """A buffer 10 s above target adds 10 to the integral per 1 s download."""
        algorithm = create_algorithm("elastic", self.catalog, self.telemetry, target_buffer_ms=10000.0)
        integrals = []
        for i in range(20):
            add_sample(self.telemetry, 1e6)
            complete_chunk(self.telemetry, i, 750000, load_duration_ms=1000.0)
            algorithm.select(buffered_duration_ms=20000.0)
            integrals.append(algorithm.integral)
            with self.subTest(chunk=i):
                self.assertAlmostEqual(algorithm.integral, 10.0 * (i + 1))
                self.assertAlmostEqual(algorithm.target_rate, 1e6 / (0.8 - 0.01 * (i + 1)), places=3)
        self.assertTrue(all(b > a for a, b in zip(integrals, integrals[1:])))
        # 1e6 / 0.6 is above 1.5 Mbps
        self.assertEqual(algorithm.decision, Decision(1, Reason.ADAPTIVE))

    def test_negative_denominator_clamps_to_zero(self):
        algorithm = create_algorithm("elastic", self.catalog, self.telemetry, target_buffer_ms=10000.0, k_i=0.1)
        decision = self.run_chunks(algorithm, 1)[0]
        self.assertEqual(algorithm.target_rate, 0.0)
        self.assertEqual(decision, Decision(3, Reason.ADAPTIVE))

    def test_target_buffer_defaults_to_max_buffer(self):
        algorithm = create_algorithm("elastic", self.catalog, PlaybackTelemetry(max_buffer_ms=12000.0))
        self.assertEqual(algorithm.target_buffer_ms, 12000.0)

    def test_integrates_on_every_decision(self):
        """Decisions between chunks keep integrating the buffer error."""
        algorithm = create_algorithm("elastic", self.catalog, self.telemetry, target_buffer_ms=10000.0)
        self.run_chunks(algorithm, 1)
        integrals = [algorithm.integral]
        for _ in range(2):
            decision = algorithm.select(buffered_duration_ms=20000.0)
            integrals.append(algorithm.integral)
            self.assertEqual(decision.reason, Reason.ADAPTIVE)
        self.assertEqual(len(integrals), 3)
        for expected, integral in zip([10.0, 20.0, 30.0], integrals):
            self.assertAlmostEqual(integral, expected)
        self.assertLess(integrals[0], integrals[1])
        self.assertLess(integrals[1], integrals[2])


# ==============================================================================
# TEST CLASS 6: Buffer-reservoir heuristic
# ==============================================================================

class TestBba2Algorithm(unittest.TestCase):
    """Test BBA2 on a constant-bitrate lookahead table.

    With a 30 s maximum buffer and 4 s chunks the reservoir clamps to its
    8 s floor and BBA1 reaches the highest bitrate at 25.2 s.
    """

    def setUp(self):
        self.catalog = make_catalog()
        self.lookahead = LookaheadTable.constant_bitrate(self.catalog, 48, CHUNK_DURATION_MS)
        self.telemetry = PlaybackTelemetry(max_buffer_ms=30000.0, lookahead=self.lookahead)
        self.algorithm = create_algorithm("bba2", self.catalog, self.telemetry)
        self.assertIsInstance(self.algorithm, Bba2Algorithm)

    def select_after(self, chunk_index, bitrate, rate_bps, buffer_ms):
        add_sample(self.telemetry, rate_bps)
        complete_chunk(self.telemetry, chunk_index, bitrate)
        return self.algorithm.select(buffered_duration_ms=buffer_ms)

    def test_startup_below_reservoir(self):
        cases = [
            (24e6, Decision(0, Reason.ADAPTIVE), 0),  # 250 ms fetch: one rung up
            (3e6, Decision(1, Reason.ADAPTIVE), 0),  # 2 s fetch: hold
            (1e6, Decision(3, Reason.INITIAL), 1),  # slower than real time: lowest
            (0.0, Decision(3, Reason.INITIAL), 1),  # nothing delivered: lowest
        ]
        for rate, expected, static in cases:
            with self.subTest(rate=rate):
                self.algorithm.reset()
                self.telemetry.clear()
                self.assertEqual(self.select_after(0, 1500000, rate, 4000.0), expected)
                self.assertEqual(self.algorithm.reservoir_ms, 8000.0)
                self.assertEqual(self.algorithm.static_alg_par, static)

    def test_without_lookahead(self):
        telemetry = PlaybackTelemetry(max_buffer_ms=30000.0)
        algorithm = create_algorithm("bba2", self.catalog, telemetry)
        add_sample(telemetry, 24e6)
        complete_chunk(telemetry, 0, 1500000)
        self.assertEqual(algorithm.select(buffered_duration_ms=20000.0), Decision(0, Reason.ADAPTIVE))
        self.assertIsNone(algorithm.reservoir_ms)

    def test_beyond_reservoir_switches_to_bba1(self):
        decision = self.select_after(0, 750000, 3e6, 20000.0)
        self.assertEqual(decision, Decision(0, Reason.ADAPTIVE))
        self.assertEqual(self.algorithm.static_alg_par, 1)

    def test_beyond_reservoir_startup_step(self):
        decision = self.select_after(0, 300000, 3e6, 12000.0)
        self.assertEqual(decision, Decision(2, Reason.ADAPTIVE))
        self.assertEqual(self.algorithm.static_alg_par, 0)

    def test_recomputes_once_per_chunk(self):
        first = self.select_after(0, 1500000, 24e6, 4000.0)
        add_sample(self.telemetry, 1e5)
        self.assertEqual(self.algorithm.select(buffered_duration_ms=0.0), first)


class TestBba2Reservoir(unittest.TestCase):
    """Test the reservoir and the BBA1 map directly."""

    def test_reservoir_upper_clamp(self):
        lookahead = LookaheadTable(sizes=[[2000000] * 20])
        reservoir = compute_reservoir_ms(lookahead, 0, 0, 1000000, CHUNK_DURATION_MS, 30000.0)
        self.assertEqual(reservoir, 16800.0)

    def test_reservoir_limited_by_remaining_chunks(self):
        lookahead = LookaheadTable(sizes=[[600000] * 20])
        reservoir = compute_reservoir_ms(lookahead, 0, 0, 1000000, CHUNK_DURATION_MS, 30000.0,
                                         remaining_chunks=2)
        self.assertAlmostEqual(reservoir, 9600.0)

    def test_reservoir_skips_missing_chunks(self):
        lookahead = LookaheadTable(sizes=[[600000] * 3])
        reservoir = compute_reservoir_ms(lookahead, 0, 0, 1000000, CHUNK_DURATION_MS, 30000.0)
        self.assertAlmostEqual(reservoir, 9600.0)

    def test_reservoir_without_table(self):
        self.assertIsNone(compute_reservoir_ms(None, 0, 0, 1000000, CHUNK_DURATION_MS, 30000.0))

    def test_bba1_map(self):
        catalog = make_catalog()
        cases = [
            (2, 4000.0, 3),  # below reservoir
            (2, 26000.0, 0),  # beyond cushion
            (3, 12000.0, 2),  # 928 kbps interpolated, limited to one rung
            (1, 12000.0, 1),
        ]
        for last_index, buffer_ms, expected in cases:
            with self.subTest(last_index=last_index, buffer_ms=buffer_ms):
                self.assertEqual(bba1_rate_index(catalog, last_index, buffer_ms, 8000.0, 25200.0), expected)

    def test_bba1_degenerate_cushion(self):
        catalog = make_catalog()
        self.assertEqual(bba1_rate_index(catalog, 2, 9000.0, 8000.0, 8000.0), 0)


# ==============================================================================
# TEST CLASS 7: Predictive statistical
# ==============================================================================

class TestOscarAlgorithm(unittest.TestCase):
    """Test the distribution-fit based algorithm."""

    def setUp(self):
        self.telemetry = PlaybackTelemetry()
        self.algorithm = create_algorithm("oscar-h", make_catalog(), self.telemetry)
        self.assertIsInstance(self.algorithm, OscarAlgorithm)

    def test_single_sample_uses_last_rate(self):
        add_sample(self.telemetry, 2e6)
        complete_chunk(self.telemetry, 0, 300000)
        decision = self.algorithm.select(buffered_duration_ms=30000.0)
        self.assertIsNone(self.algorithm.fit)
        self.assertAlmostEqual(self.algorithm.target_rate, 1.8e6)
        # 1.5 Mbps fits, but the step up is limited to one rung
        self.assertEqual(decision, Decision(2, Reason.ADAPTIVE))

    def test_empty_buffer_selects_lowest(self):
        add_sample(self.telemetry, 10e6)
        add_sample(self.telemetry, 10e6)
        complete_chunk(self.telemetry, 0, 300000)
        decision = self.algorithm.select(buffered_duration_ms=0.0)
        self.assertIsNotNone(self.algorithm.fit)
        self.assertEqual(self.algorithm.target_rate, 0.0)
        self.assertEqual(decision, Decision(3, Reason.ADAPTIVE))

    def test_steps_up_one_rung_per_chunk(self):
        add_sample(self.telemetry, 10e6)
        indices = []
        for i in range(4):
            add_sample(self.telemetry, 10e6)
            complete_chunk(self.telemetry, i, 300000)
            indices.append(self.algorithm.select(buffered_duration_ms=30000.0).index)
        self.assertEqual(indices, [2, 1, 0, 0])
        self.assertLess(self.algorithm.target_rate, 10.1e6)
        self.assertGreater(self.algorithm.target_rate, 3e6)

    def test_recomputes_once_per_chunk(self):
        add_sample(self.telemetry, 10e6)
        add_sample(self.telemetry, 10e6)
        complete_chunk(self.telemetry, 0, 300000)
        first = self.algorithm.select(buffered_duration_ms=30000.0)
        target = self.algorithm.target_rate
        add_sample(self.telemetry, 1e5)
        self.assertEqual(self.algorithm.select(buffered_duration_ms=0.0), first)
        self.assertEqual(self.algorithm.target_rate, target)

    def test_drop_is_not_limited(self):
        for i in range(3):
            add_sample(self.telemetry, 10e6)
            complete_chunk(self.telemetry, i, 300000)
            self.algorithm.select(buffered_duration_ms=30000.0)
        self.assertEqual(self.algorithm.decision.index, 0)
        complete_chunk(self.telemetry, 3, 1500000)
        self.assertEqual(self.algorithm.select(buffered_duration_ms=0.0).index, 3)


if __name__ == '__main__':
    unittest.main()

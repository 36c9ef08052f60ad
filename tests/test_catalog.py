"""Unit tests for the representation catalog and rate-to-index mapping."""

import unittest

from abr_adapt.core.catalog import Representation, RepresentationCatalog


LEVELS_KBPS = [3000, 1500, 750, 300]


# ==============================================================================
# TEST CLASS 1: Catalog construction
# ==============================================================================

class TestCatalogConstruction(unittest.TestCase):
    """Test building catalogs and rejecting misconfigured ladders."""

    def test_from_kbps_sorts_highest_first(self):
        catalog = RepresentationCatalog.from_kbps([300, 3000, 750, 1500])
        self.assertEqual(catalog.bitrates, [3000000, 1500000, 750000, 300000])
        self.assertEqual(catalog.highest_index, 0)
        self.assertEqual(catalog.lowest_index, 3)
        self.assertEqual(catalog.highest_bitrate, 3000000)
        self.assertEqual(catalog.lowest_bitrate, 300000)

    def test_from_bitrates_keeps_ids(self):
        catalog = RepresentationCatalog.from_bitrates([500, 1000], ids=['low', 'high'])
        self.assertEqual(catalog[0].id, 'high')
        self.assertEqual(catalog[1].id, 'low')

    def test_empty_catalog_rejected(self):
        with self.assertRaises(ValueError):
            RepresentationCatalog([])

    def test_unordered_catalog_rejected(self):
        for bitrates in ([1000, 2000], [1000, 1000]):
            with self.subTest(bitrates=bitrates):
                with self.assertRaises(ValueError):
                    RepresentationCatalog([Representation(bitrate=b) for b in bitrates])

    def test_ids_length_mismatch(self):
        with self.assertRaises(ValueError):
            RepresentationCatalog.from_bitrates([500, 1000], ids=['only'])


# ==============================================================================
# TEST CLASS 2: Index lookups
# ==============================================================================

class TestCatalogLookup(unittest.TestCase):
    """Test the shared rate-to-index mappers."""

    def setUp(self):
        self.catalog = RepresentationCatalog.from_kbps(LEVELS_KBPS)

    def test_best_index_below(self):
        cases = [
            (1.7e6, 1),
            (3.1e6, 0),
            (1e7, 0),
            (3e6, 1),  # strictly below
            (750e3, 3),
            (300e3, 3),  # nothing below: lowest
            (0.0, 3),
        ]
        for target, expected in cases:
            with self.subTest(target=target):
                self.assertEqual(self.catalog.best_index_below(target), expected)

    def test_nearest_index_at_or_above(self):
        cases = [
            (800e3, 1),
            (750e3, 2),
            (5e6, 0),  # above every bitrate: highest
            (0.0, 3),
        ]
        for target, expected in cases:
            with self.subTest(target=target):
                self.assertEqual(self.catalog.nearest_index_at_or_above(target), expected)

    def test_index_of(self):
        self.assertEqual(self.catalog.index_of(750000), 2)
        with self.assertRaises(ValueError):
            self.catalog.index_of(123)

    def test_out_of_range_index(self):
        for index in (-1, 4):
            with self.subTest(index=index):
                with self.assertRaises(IndexError):
                    self.catalog.bitrate(index)
                with self.assertRaises(IndexError):
                    self.catalog.check_index(index)

    def test_bitrate(self):
        self.assertEqual(self.catalog.bitrate(1), 1500000)
        self.assertEqual(len(self.catalog), 4)
        self.assertEqual([r.bitrate for r in self.catalog], self.catalog.bitrates)


if __name__ == '__main__':
    unittest.main()

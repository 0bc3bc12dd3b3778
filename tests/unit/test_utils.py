import math
import unittest

import numpy as np

from ipws import utils


class TestUtils(unittest.TestCase):
    def test_km_m_roundtrip(self):
        km = 12.345
        meters = utils.km_to_m(km)
        self.assertAlmostEqual(utils.m_to_km(meters), km, places=9)

    def test_deg_rad_roundtrip(self):
        self.assertAlmostEqual(utils.deg_to_rad(180.0), math.pi, places=12)
        self.assertAlmostEqual(utils.rad_to_deg(utils.deg_to_rad(33.3)), 33.3, places=9)

    def test_distance_identical_points_is_zero(self):
        self.assertEqual(utils.distance_km(25.396, 68.358, 25.396, 68.358), 0.0)

    def test_distance_one_degree_of_latitude(self):
        expected = utils.EARTH_RADIUS_KM * math.pi / 180
        self.assertAlmostEqual(utils.distance_km(30.0, 70.0, 31.0, 70.0), expected, places=6)

    def test_distance_is_symmetric(self):
        pairs = [
            ((35.2971, 75.6333), (24.8608, 67.0011)),
            ((27.7052, 68.8574), (27.6917, 68.8950)),
            ((-33.9, 18.4), (51.5, -0.12)),
        ]
        for a, b in pairs:
            self.assertAlmostEqual(utils.distance_km(*a, *b), utils.distance_km(*b, *a), places=9)

    def test_distance_between_takes_lon_lat_pairs(self):
        a = (68.358, 25.396)
        b = (67.925, 24.747)
        self.assertAlmostEqual(utils.distance_between(a, b),
                               utils.distance_km(25.396, 68.358, 24.747, 67.925), places=12)

    def test_interpolate(self):
        self.assertEqual(utils.interpolate((0.0, 0.0), (3.0, 6.0), 1 / 3), (1.0, 2.0))

    def test_generate_id_is_seeded(self):
        first = utils.generate_id(np.random.default_rng(7))
        second = utils.generate_id(np.random.default_rng(7))
        self.assertEqual(first, second)
        self.assertEqual(len(first), utils.ID_LENGTH)
        self.assertTrue(set(first) <= set(utils.ID_ALPHABET))

    def test_make_rng_passes_generators_through(self):
        rng = np.random.default_rng(1)
        self.assertIs(utils.make_rng(rng), rng)


if __name__ == '__main__':
    unittest.main()

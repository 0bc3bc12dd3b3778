import unittest
from datetime import datetime, timezone

import numpy as np

from ipws import animation
from ipws.models import Station

RIVER = {
    'type': 'FeatureCollection',
    'features': [
        {'type': 'Feature', 'geometry': {'type': 'LineString', 'coordinates': [[0, 0], [1, 0], [2, 0]]}},
        {'type': 'Feature', 'geometry': {'type': 'Polygon',
                                         'coordinates': [[[0, 0], [0, 1], [1, 1], [0, 0]]]}},
        {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': [5, 5]}},
    ],
}


def make_station(id, current_level, city='Sukkur'):
    return Station(
        id=id, name=f'{city}-{id}', device_id='ESP32-SUK-001', coordinates=(68.8574, 27.7052),
        city=city, district=city, province='Sindh',
        current_level=current_level, danger_level=100.0, normal_level=40.0,
        last_updated=datetime(2026, 7, 1, tzinfo=timezone.utc),
    )


class TestRiverParticles(unittest.TestCase):
    def test_extract_paths(self):
        paths = animation.extract_paths(RIVER)
        self.assertEqual(len(paths), 2)
        self.assertEqual(paths[0], [(0, 0), (1, 0), (2, 0)])

    def test_initialize_particles(self):
        state = animation.initialize_particles(animation.extract_paths(RIVER), count=40,
                                               rng=np.random.default_rng(3))
        self.assertEqual(len(state.particles), 40)
        for particle in state.particles:
            self.assertTrue(0.0 <= particle.progress < 1.0)
        self.assertEqual(state.time_ms, 0.0)

    def test_no_paths_no_particles(self):
        self.assertEqual(animation.initialize_particles([], rng=np.random.default_rng(3)).particles, ())

    def test_progress_wraps_to_the_start(self):
        path = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]
        state = animation.RiverAnimationState([path], [animation.Particle((1.8, 0.0), 0.9, 0, 1)])
        # 1.5 x 0.0007 per ms for 200 ms moves the particle by 0.21
        moved = animation.advance(state, 200)
        particle = moved.particles[0]
        self.assertAlmostEqual(particle.progress, 0.11)
        self.assertAlmostEqual(particle.position[0], 0.22)
        self.assertEqual(particle.segment_index, 0)
        self.assertEqual(moved.time_ms, 200)
        self.assertEqual(state.particles[0].progress, 0.9)

    def test_zero_delta_keeps_positions(self):
        state = animation.initialize_particles(animation.extract_paths(RIVER), count=10,
                                               rng=np.random.default_rng(3))
        moved = animation.advance(state, 0)
        self.assertEqual([p.progress for p in moved.particles], [p.progress for p in state.particles])

    def test_negative_delta_raises(self):
        state = animation.initialize_particles([], rng=np.random.default_rng(3))
        with self.assertRaises(ValueError):
            animation.advance(state, -1)


class TestRipples(unittest.TestCase):
    def test_ripple_frame(self):
        self.assertEqual(animation.ripple_frame(0, 0), (0.0, 150.0, 200.0))
        self.assertEqual(animation.ripple_frame(1000, 0), (15000.0, 75.0, 100.0))
        self.assertEqual(animation.ripple_frame(2500, 0), (7500.0, 112.5, 150.0))

    def test_later_ripples_lag(self):
        radius, fill_alpha, line_alpha = animation.ripple_frame(0, 1)
        self.assertEqual(radius, 22500.0)
        self.assertEqual(fill_alpha, 37.5)
        self.assertEqual(line_alpha, 50.0)

    def test_ripple_layers_need_a_selected_area(self):
        stations = [make_station('a', 96.0)]
        self.assertEqual(animation.ripple_layers(stations, 500, None), [])

    def test_ripple_layers_for_critical_stations_in_area(self):
        stations = [make_station('a', 96.0), make_station('b', 92.0), make_station('c', 85.0),
                    make_station('d', 97.0, city='Thatta')]
        ripples = animation.ripple_layers(stations, 500, 'Sukkur')
        self.assertEqual(len(ripples), 6)
        self.assertEqual([r['filled'] for r in ripples[:3]], [True, True, False])
        self.assertEqual(ripples[0]['color'][:3], [220, 38, 38])


if __name__ == '__main__':
    unittest.main()

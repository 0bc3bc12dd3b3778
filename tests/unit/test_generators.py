import unittest
from datetime import datetime, timezone

import numpy as np

from ipws import stations, villages, shelters
from ipws.thresholds import is_critical
from ipws.utils import distance_km

NOW = datetime(2026, 8, 15, 6, 0, tzinfo=timezone.utc)


class TestStationGenerator(unittest.TestCase):
    def setUp(self):
        self.stations = stations.generate_stations(np.random.default_rng(42), NOW)

    def test_one_station_per_device(self):
        self.assertEqual(len(self.stations), stations.get_total_sensor_count())
        self.assertEqual(len({s.id for s in self.stations}), len(self.stations))

    def test_warning_level_below_danger_level(self):
        for station in self.stations:
            self.assertGreaterEqual(station.warning_level, 0)
            self.assertLess(station.warning_level, station.danger_level)
            self.assertLess(station.normal_level, station.danger_level)

    def test_every_tier_is_represented(self):
        tiers = {s.risk_level for s in self.stations}
        self.assertEqual(tiers, {'yellow', 'orange', 'darkOrange', 'red'})

    def test_same_seed_same_stations(self):
        again = stations.generate_stations(np.random.default_rng(42), NOW)
        self.assertEqual([s.to_dict() for s in again], [s.to_dict() for s in self.stations])

    def test_simulate_reading_stays_within_bounds(self):
        rng = np.random.default_rng(3)
        station = self.stations[0]
        for _ in range(200):
            station = stations.simulate_reading(station, rng, NOW)
            self.assertGreaterEqual(station.current_level, station.normal_level - 5 - 0.01)
            self.assertLessEqual(station.current_level, station.danger_level + 3 + 0.01)

    def test_filters(self):
        sukkur = stations.get_stations_by_city('Sukkur', self.stations)
        self.assertTrue(sukkur)
        self.assertTrue(all(s.city == 'Sukkur' for s in sukkur))
        critical = stations.get_critical_stations(self.stations)
        self.assertTrue(all(is_critical(s.risk_level) for s in critical))
        red = stations.get_stations_by_risk('red', self.stations)
        self.assertTrue(red)
        self.assertEqual(len(red), sum(1 for s in self.stations if s.risk_level == 'red'))
        self.assertEqual(len(stations.filter_by_area(self.stations, None)), len(self.stations))
        karachi = stations.filter_by_area(self.stations, 'Karachi')
        self.assertTrue(karachi)
        self.assertTrue(all(s.district == 'Karachi' for s in karachi))


class TestVillageGenerator(unittest.TestCase):
    def setUp(self):
        rng = np.random.default_rng(11)
        self.stations = stations.generate_stations(rng, NOW)
        self.villages = villages.generate_villages(rng, self.stations)

    def test_cluster_counts(self):
        expected = sum(c['count'] for c in villages.VILLAGE_CLUSTERS)
        self.assertEqual(len(self.villages), expected)

    def test_populations_are_positive_ints(self):
        for village in self.villages:
            self.assertIsInstance(village.population, int)
            self.assertGreater(village.population, 0)
            self.assertGreaterEqual(village.distance_to_river, 0.5)
            self.assertLessEqual(village.distance_to_river, 25.0)

    def test_nearest_station_is_the_closest(self):
        for village in self.villages[:20]:
            nearest = min(self.stations, key=lambda s: distance_km(
                village.latitude, village.longitude, s.latitude, s.longitude))
            self.assertEqual(village.nearest_station_id, nearest.id)

    def test_critical_villages_have_plans_and_capacity(self):
        for village in villages.get_high_risk_villages(self.villages):
            self.assertTrue(village.evacuation_plan)
            self.assertEqual(village.shelter_capacity, int(village.population * 0.9))

    def test_population_at_risk(self):
        expected = sum(v.population for v in self.villages if is_critical(v.risk_level))
        self.assertEqual(villages.calculate_population_at_risk(self.villages), expected)


class TestShelterRegistry(unittest.TestCase):
    def setUp(self):
        self.shelters = shelters.generate_shelters(np.random.default_rng(5))

    def test_catalogue_and_initial_occupancy(self):
        self.assertEqual(len(self.shelters), len(shelters.SHELTER_LOCATIONS))
        for shelter in self.shelters:
            self.assertLessEqual(shelter.current_occupancy, shelter.capacity * 0.4)
            self.assertEqual(shelter.status, 'available')

    def test_facilities_scale_with_capacity(self):
        by_name = {s.name: s for s in self.shelters}
        self.assertEqual(by_name['Hyderabad Central Camp'].facilities, frozenset(shelters.FULL_FACILITIES))
        self.assertEqual(by_name['Tarbela Relief Station'].facilities, frozenset(shelters.MEDICAL_FACILITIES))
        self.assertEqual(by_name['Skardu Central School'].facilities, frozenset(shelters.COMMON_FACILITIES))

    def test_phone_number_format(self):
        for shelter in self.shelters:
            prefix, code, number = shelter.contact.split('-')
            self.assertEqual(prefix, '+92')
            self.assertIn(code, shelters.PHONE_AREA_CODES)
            self.assertEqual(len(number), 7)

    def test_nearest_shelter_skips_full_and_closed(self):
        sukkur_camp, sukkur_stadium = shelters.get_shelters_by_city('Sukkur', self.shelters)
        candidates = [sukkur_camp.with_occupancy(sukkur_camp.capacity),
                      sukkur_stadium.with_occupancy(0, closed=True)] + self.shelters[-1:]
        nearest = shelters.find_nearest_shelter(27.72, 68.875, candidates)
        self.assertIs(nearest, candidates[2])

    def test_nearest_shelter_none_when_nothing_available(self):
        full = [s.with_occupancy(s.capacity) for s in self.shelters]
        self.assertIsNone(shelters.find_nearest_shelter(27.7, 68.8, full))
        self.assertEqual(shelters.get_available_shelters(full), [])


if __name__ == '__main__':
    unittest.main()

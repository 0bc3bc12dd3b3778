import unittest
from datetime import datetime, timezone

import numpy as np

from ipws.clustering import StationClusterer, project, unproject
from ipws.stations import generate_stations, filter_by_area

NOW = datetime(2026, 8, 15, 6, 0, tzinfo=timezone.utc)
WORLD = (-180.0, -85.0, 180.0, 85.0)


def count_points(features):
    return sum(f['properties']['point_count'] if f['properties']['cluster'] else 1 for f in features)


def groups(clusterer, zoom):
    """Station id -> group key at a zoom level."""
    membership = {}
    for feature in clusterer.get_clusters(WORLD, zoom):
        if feature['properties']['cluster']:
            cluster_id = feature['properties']['cluster_id']
            for station in clusterer.get_leaves(cluster_id):
                membership[station.id] = cluster_id
        else:
            station_id = feature['properties']['stationId']
            membership[station_id] = station_id
    return membership


class TestProjection(unittest.TestCase):
    def test_roundtrip(self):
        xs, ys = project([68.8574], [27.7052])
        lon, lat = unproject(float(xs[0]), float(ys[0]))
        self.assertAlmostEqual(lon, 68.8574, places=6)
        self.assertAlmostEqual(lat, 27.7052, places=6)

    def test_origin_maps_to_centre(self):
        xs, ys = project([0.0], [0.0])
        self.assertAlmostEqual(float(xs[0]), 0.5)
        self.assertAlmostEqual(float(ys[0]), 0.5)


class TestStationClusterer(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.stations = generate_stations(np.random.default_rng(21), NOW)
        cls.clusterer = StationClusterer(max_zoom=12).load(cls.stations)

    def test_radius_halves_per_zoom(self):
        self.assertAlmostEqual(self.clusterer.radius_at(0), 100 / 512)
        self.assertAlmostEqual(self.clusterer.radius_at(3), self.clusterer.radius_at(2) / 2)

    def test_counts_are_conserved_at_every_zoom(self):
        for zoom in range(0, 14):
            features = self.clusterer.get_clusters(WORLD, zoom)
            self.assertEqual(count_points(features), len(self.stations), zoom)

    def test_zoomed_out_basin_is_one_cluster(self):
        features = self.clusterer.get_clusters(WORLD, 0)
        self.assertEqual(len(features), 1)
        self.assertTrue(features[0]['properties']['cluster'])
        self.assertEqual(features[0]['properties']['riskLevel'], 'red')

    def test_above_max_zoom_every_station_is_single(self):
        features = self.clusterer.get_clusters(WORLD, 20)
        self.assertEqual(len(features), len(self.stations))
        self.assertTrue(all(not f['properties']['cluster'] for f in features))

    def test_clusters_only_split_when_zooming_in(self):
        previous = groups(self.clusterer, 0)
        for zoom in range(1, 10):
            current = groups(self.clusterer, zoom)
            for a in current:
                for b in current:
                    if current[a] == current[b]:
                        self.assertEqual(previous[a], previous[b], zoom)
            previous = current

    def test_cluster_risk_is_highest_member_tier(self):
        ranks = {'yellow': 0, 'orange': 1, 'darkOrange': 2, 'red': 3}
        for feature in self.clusterer.get_clusters(WORLD, 5):
            if not feature['properties']['cluster']:
                continue
            leaves = self.clusterer.get_leaves(feature['properties']['cluster_id'])
            self.assertEqual(len(leaves), feature['properties']['point_count'])
            highest = max(leaves, key=lambda s: ranks[s.risk_level]).risk_level
            self.assertEqual(feature['properties']['riskLevel'], highest)

    def test_children_and_expansion_zoom(self):
        cluster = self.clusterer.get_clusters(WORLD, 0)[0]
        cluster_id = cluster['properties']['cluster_id']
        children = self.clusterer.get_children(cluster_id)
        self.assertEqual(count_points(children), cluster['properties']['point_count'])

        expansion = self.clusterer.get_cluster_expansion_zoom(cluster_id)
        self.assertGreater(expansion, 0)
        ids = {f['properties'].get('cluster_id') for f in self.clusterer.get_clusters(WORLD, expansion)}
        self.assertNotIn(cluster_id, ids)

    def test_bbox_limits_results(self):
        sindh = (66.5, 23.5, 70.0, 28.5)
        features = self.clusterer.get_clusters(sindh, 13)
        self.assertTrue(features)
        for feature in features:
            lon, lat = feature['geometry']['coordinates']
            self.assertTrue(66.5 <= lon <= 70.0 and 23.5 <= lat <= 28.5)

    def test_unknown_cluster_id_raises(self):
        with self.assertRaises(KeyError):
            self.clusterer.get_leaves(3)
        with self.assertRaises(KeyError):
            self.clusterer.get_children(10 ** 9)
        # Well-formed id (origin zoom 2) that no cluster was ever given
        missing = (99999 << 5) + 3 + len(self.stations)
        with self.assertRaises(KeyError):
            self.clusterer.get_cluster_expansion_zoom(missing)
        with self.assertRaises(KeyError):
            self.clusterer.get_cluster_expansion_zoom(3)

    def test_area_filter(self):
        clusterer = StationClusterer(max_zoom=12).load(self.stations, selected_area='Sukkur')
        expected = filter_by_area(self.stations, 'Sukkur')
        self.assertEqual(count_points(clusterer.get_clusters(WORLD, 0)), len(expected))

    def test_empty_station_set(self):
        clusterer = StationClusterer().load([])
        self.assertEqual(clusterer.get_clusters(WORLD, 3), [])

    def test_invalid_zoom_range(self):
        with self.assertRaises(ValueError):
            StationClusterer(min_zoom=5, max_zoom=2)


if __name__ == '__main__':
    unittest.main()

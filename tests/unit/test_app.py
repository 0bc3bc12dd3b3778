import unittest

from app import app
from ipws.results import generate


class TestFloodApi(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        app.config['TESTING'] = True
        app.config['DATASET'] = generate(seed=7, hours=6)
        cls.dataset = app.config['DATASET']

    def setUp(self):
        app.config['DATASET'] = self.dataset
        self.client = app.test_client()

    def test_stations(self):
        response = self.client.get('/stations')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.get_json()), len(self.dataset.stations))

    def test_stations_filtered_by_risk(self):
        response = self.client.get('/stations?risk=red')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(all(s['riskLevel'] == 'red' for s in response.get_json()))

    def test_unknown_risk_level(self):
        response = self.client.get('/stations?risk=green')
        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.get_json())
        self.assertEqual(self.client.get('/villages?risk=green').status_code, 400)

    def test_villages_filtered_by_risk(self):
        response = self.client.get('/villages?risk=red')
        self.assertEqual(response.status_code, 200)
        expected = [v.id for v in self.dataset.villages if v.risk_level == 'red']
        self.assertEqual([v['id'] for v in response.get_json()], expected)
        self.assertEqual(len(self.client.get('/villages').get_json()), len(self.dataset.villages))

    def test_station_detail_and_missing_station(self):
        station = self.dataset.stations[0]
        response = self.client.get(f'/stations/{station.id}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['station']['id'], station.id)
        self.assertEqual(self.client.get('/stations/nope').status_code, 404)

    def test_timeseries_with_forecast(self):
        station = self.dataset.stations[0]
        response = self.client.get(f'/stations/{station.id}/timeseries?forecast=12')
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(len(payload['data']), 7)
        self.assertEqual(len(payload['forecast']), 12)
        self.assertEqual(self.client.get(f'/stations/{station.id}/timeseries?forecast=100').status_code, 400)
        self.assertEqual(self.client.get(f'/stations/{station.id}/timeseries?forecast=x').status_code, 400)

    def test_buffers_geojson(self):
        payload = self.client.get('/buffers?format=geojson').get_json()
        self.assertEqual(payload['type'], 'FeatureCollection')
        self.assertEqual(len(payload['features']), len(self.dataset.buffers))

    def test_alerts_filter(self):
        payload = self.client.get('/alerts?type=critical').get_json()
        self.assertTrue(all(a['type'] == 'critical' for a in payload))
        self.assertEqual(self.client.get('/alerts?type=urgent').status_code, 400)

    def test_clusters(self):
        response = self.client.get('/clusters?zoom=0')
        self.assertEqual(response.status_code, 200)
        features = response.get_json()['features']
        total = sum(f['properties']['point_count'] if f['properties']['cluster'] else 1 for f in features)
        self.assertEqual(total, len(self.dataset.stations))

    def test_clusters_invalid_input(self):
        self.assertEqual(self.client.get('/clusters').status_code, 400)
        self.assertEqual(self.client.get('/clusters?zoom=abc').status_code, 400)
        self.assertEqual(self.client.get('/clusters?zoom=30').status_code, 400)
        self.assertEqual(self.client.get('/clusters?zoom=5&bbox=1,2,3').status_code, 400)

    def test_summary_and_population(self):
        summary = self.client.get('/summary?lang=ur').get_json()
        self.assertEqual(summary['statistics']['totalStations'], len(self.dataset.stations))
        population = self.client.get('/population').get_json()
        self.assertEqual(population['metadata']['totalSensors'], len(self.dataset.stations))

    def test_regenerate(self):
        response = self.client.post('/regenerate', json={'seed': 11})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['seed'], 11)
        self.assertIsNot(app.config['DATASET'], self.dataset)

    def test_regenerate_invalid_seed(self):
        self.assertEqual(self.client.post('/regenerate', json={'seed': -1}).status_code, 400)
        self.assertEqual(self.client.post('/regenerate', json={'seed': 'abc'}).status_code, 400)


if __name__ == '__main__':
    unittest.main()

import unittest
from datetime import datetime, timedelta, timezone

from ipws import alerts
from ipws.models import Station
from ipws.population_calculator import calculate_population_for_station

NOW = datetime(2026, 8, 15, 6, 0, tzinfo=timezone.utc)


def make_station(id, current_level, minutes_ago=0):
    return Station(
        id=id, name=f'Sukkur-{id}', device_id='ESP32-SUK-001', coordinates=(68.8574, 27.7052),
        city='Sukkur', district='Sukkur', province='Sindh',
        current_level=current_level, danger_level=100.0, normal_level=40.0,
        last_updated=NOW - timedelta(minutes=minutes_ago),
    )


class TestCreateAlert(unittest.TestCase):
    def test_no_alert_below_orange(self):
        self.assertIsNone(alerts.create_alert(make_station('a', 50.0)))

    def test_alert_types_by_tier(self):
        self.assertEqual(alerts.create_alert(make_station('a', 96.0)).type, 'critical')
        self.assertEqual(alerts.create_alert(make_station('a', 91.0)).type, 'critical')
        self.assertEqual(alerts.create_alert(make_station('a', 85.0)).type, 'warning')

    def test_title_and_message(self):
        alert = alerts.create_alert(make_station('a', 96.0))
        self.assertEqual(alert.id, 'alert-a')
        self.assertEqual(alert.title, 'CRITICAL FLOOD ALERT')
        self.assertIn('96.00m', alert.message)
        self.assertIn('96.0%', alert.message)
        self.assertEqual(alert.timestamp, NOW)

    def test_localised_title(self):
        alert = alerts.create_alert(make_station('a', 85.0), language='ur')
        self.assertEqual(alert.title, 'سیلاب کی نگرانی')

    def test_population_impact_is_attached(self):
        station = make_station('a', 96.0)
        data = calculate_population_for_station(station)
        alert = alerts.create_alert(station, data)
        self.assertEqual(alert.population_affected, data.total_affected_population)
        self.assertEqual(alert.economic_impact, data.economic_data['estimatedEconomicLoss'])
        self.assertEqual(alert.to_dict()['populationAffected'], data.total_affected_population)


class TestGenerateAlerts(unittest.TestCase):
    def setUp(self):
        self.stations = [
            make_station('warn-new', 85.0, minutes_ago=1),
            make_station('crit-old', 96.0, minutes_ago=30),
            make_station('calm', 40.0),
            make_station('crit-new', 92.0, minutes_ago=5),
            make_station('warn-old', 82.0, minutes_ago=50),
        ]

    def test_critical_first_then_newest(self):
        result = alerts.generate_alerts(self.stations)
        self.assertEqual([a.station.id for a in result], ['crit-new', 'crit-old', 'warn-new', 'warn-old'])

    def test_population_matched_by_station(self):
        data = [calculate_population_for_station(s) for s in self.stations]
        result = alerts.generate_alerts(self.stations, data)
        by_id = {d.station_id: d for d in data}
        for alert in result:
            self.assertEqual(alert.population_affected, by_id[alert.station.id].total_affected_population)

    def test_filter_alerts(self):
        result = alerts.generate_alerts(self.stations)
        self.assertEqual(len(alerts.filter_alerts(result)), 4)
        self.assertEqual(len(alerts.filter_alerts(result, 'all')), 4)
        self.assertEqual(len(alerts.filter_alerts(result, 'critical')), 2)
        self.assertEqual(alerts.filter_alerts(result, 'info'), [])
        with self.assertRaises(ValueError):
            alerts.filter_alerts(result, 'urgent')


if __name__ == '__main__':
    unittest.main()

"""
IPWS Flood Early Warning - Station Time Series

Hourly history and short forecasts of water level, flow rate, rainfall and
temperature for a station. Series feed the trend charts only; nothing in the
risk pipeline reads them back.

Series are pandas DataFrames with one row per hour and the columns
timestamp, waterLevel, flowRate, rainfall, temperature.
"""

import logging
from datetime import datetime, timedelta, timezone

import pandas as pd

from ipws.utils import make_rng, round_to

logger = logging.getLogger(__name__)

SERIES_COLUMNS = ['timestamp', 'waterLevel', 'flowRate', 'rainfall', 'temperature']

# History starts this far (m) below the current reading, plus up to HISTORY_SPREAD_M more
HISTORY_OFFSET_M = 5.0
HISTORY_SPREAD_M = 10.0

# Levels stay within [normal - 5, danger + 3] m
LEVEL_FLOOR_BELOW_NORMAL = 5.0
LEVEL_CEILING_ABOVE_DANGER = 3.0
FORECAST_CEILING_ABOVE_DANGER = 5.0

BASE_FLOW = 2000.0
MIN_FLOW = 500.0
BASE_TEMPERATURE = 25.0

ACCELERATION_WINDOW = 6
ACCELERATION_THRESHOLD_M = 0.2


class StationTimeSeries:
    """Readings of one station, oldest first."""

    def __init__(self, station_id, data):
        self.station_id = station_id
        self.data = data

    def __len__(self):
        return len(self.data)

    def to_dict(self):
        records = self.data.copy()
        records['timestamp'] = records['timestamp'].map(lambda t: t.isoformat())
        return {'stationId': self.station_id, 'data': records.to_dict(orient='records')}


def _level_change(station, flooding, rng):
    if flooding:
        # Steady rise of 0.1-0.5 m per hour
        return 0.1 + rng.random() * 0.4
    if station.trend == 'rising':
        return (rng.random() - 0.3) * 0.5
    if station.trend == 'falling':
        return (rng.random() - 0.7) * 0.5
    return (rng.random() - 0.5) * 0.3


def generate_time_series(station, rng=None, hours=48, now=None):
    """
    Hourly readings for a station from now - hours up to now.

    Critical stations (darkOrange, red) follow a flooding pattern: the level
    climbs every hour and rainfall is heavy. Others drift according to the
    station's trend.

    Args:
        station (Station): Station to simulate
        rng (numpy.random.Generator, optional): Random source of the generation
        hours (int): Length of the history; hours + 1 points are produced
        now (datetime, optional): Timestamp of the last point

    Returns:
        StationTimeSeries
    """
    if hours < 0:
        raise ValueError(f"hours cannot be negative, got {hours}")
    rng = make_rng(rng)
    now = now or datetime.now(timezone.utc)
    flooding = station.is_critical

    floor = station.normal_level - LEVEL_FLOOR_BELOW_NORMAL
    ceiling = station.danger_level + LEVEL_CEILING_ABOVE_DANGER

    level = station.current_level - (HISTORY_OFFSET_M + rng.random() * HISTORY_SPREAD_M)
    rows = []
    for i in range(hours, -1, -1):
        level = max(floor, min(ceiling, level + _level_change(station, flooding, rng)))

        # Flow follows the level
        base_flow = BASE_FLOW + (level - station.normal_level) * 100
        flow_rate = max(MIN_FLOW, base_flow + (rng.random() - 0.5) * 1000)

        rainfall = 10 + rng.random() * 40 if flooding else rng.random() * 15
        temperature = BASE_TEMPERATURE + (rng.random() - 0.5) * 10

        rows.append({
            'timestamp': now - timedelta(hours=i),
            'waterLevel': round_to(level, 2),
            'flowRate': round_to(flow_rate, 2),
            'rainfall': round_to(rainfall, 1),
            'temperature': round_to(temperature, 1),
        })

    return StationTimeSeries(station.id, pd.DataFrame(rows, columns=SERIES_COLUMNS))


def generate_multiple_time_series(stations, rng=None, hours=48, now=None):
    """Series for every station, keyed by station id."""
    rng = make_rng(rng)
    now = now or datetime.now(timezone.utc)
    series = {s.id: generate_time_series(s, rng, hours, now) for s in stations}
    logger.info(f"Generated {hours}h time series for {len(series)} stations")
    return series


def generate_forecast(station, rng=None, forecast_hours=24, now=None):
    """
    Naive forecast for the next hours.

    The level starts at the current reading and drifts with a bias from the
    station's trend, bounded to [normal, danger + 5] m.

    Returns:
        pandas.DataFrame: One row per future hour
    """
    rng = make_rng(rng)
    now = now or datetime.now(timezone.utc)
    multiplier = {'rising': 1.2, 'falling': 0.8}.get(station.trend, 1.0)
    ceiling = station.danger_level + FORECAST_CEILING_ABOVE_DANGER

    level = station.current_level
    rows = []
    for i in range(1, forecast_hours + 1):
        change = (rng.random() - 0.4) * 0.5 * multiplier
        level = max(station.normal_level, min(ceiling, level + change))
        rows.append({
            'timestamp': now + timedelta(hours=i),
            'waterLevel': round_to(level, 2),
            'flowRate': round_to(2000 + rng.random() * 5000, 2),
            'rainfall': round_to(rng.random() * 25, 1),
            'temperature': round_to(20 + rng.random() * 15, 1),
        })
    return pd.DataFrame(rows, columns=SERIES_COLUMNS)


def get_latest_reading(time_series):
    """Most recent point as a dict, or None for an empty series."""
    if time_series is None or len(time_series.data) == 0:
        return None
    return time_series.data.iloc[-1].to_dict()


def calculate_average_level(time_series):
    if time_series is None or len(time_series.data) == 0:
        return 0.0
    return round_to(time_series.data['waterLevel'].mean(), 2)


def detect_acceleration(time_series):
    """
    Whether the water level is rising faster and faster.

    Compares the mean hourly change of the earlier and later part of the last
    six hours; the later mean must be larger and above 0.2 m/h.
    """
    if time_series is None or len(time_series.data) < 3:
        return False
    changes = time_series.data['waterLevel'].tail(ACCELERATION_WINDOW).diff().dropna().tolist()
    first, second = changes[:3], changes[3:]
    if not second:
        return False
    first_mean = sum(first) / 3
    second_mean = sum(second) / len(second)
    return second_mean > first_mean and second_mean > ACCELERATION_THRESHOLD_M

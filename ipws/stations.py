"""
IPWS Flood Early Warning - Monitoring Station Generator

Builds the station population along the Indus, from the Gilgit-Baltistan
headwaters to the Karachi delta. The generator stands in for the live device
feed: everything downstream consumes the Station records it returns, never
the way they were produced.

Key Functions:
- generate_stations(): one Station per deployed device, readings sampled from a seeded source
- simulate_reading(): next reading for a station, used by the tick simulation
- get_stations_by_city(), get_stations_by_risk(), get_critical_stations(): filters
"""

import logging
from datetime import datetime, timedelta, timezone

from ipws.models import Station
from ipws.thresholds import classify_risk, is_critical
from ipws.utils import generate_id, round_to, make_rng

logger = logging.getLogger(__name__)

# Cities and towns along the Indus (north to south) and the number of
# devices deployed at each.
INDUS_CITIES = [
    # UPPER INDUS: Gilgit-Baltistan (Headwaters)
    {'name': 'Skardu', 'lat': 35.2971, 'lon': 75.6333, 'province': 'Gilgit-Baltistan', 'district': 'Skardu', 'devices': 4},
    {'name': 'Shigar', 'lat': 35.4277, 'lon': 75.7348, 'province': 'Gilgit-Baltistan', 'district': 'Shigar', 'devices': 2},
    {'name': 'Khaplu', 'lat': 35.1434, 'lon': 76.3373, 'province': 'Gilgit-Baltistan', 'district': 'Ghanche', 'devices': 2},
    {'name': 'Gilgit', 'lat': 35.9208, 'lon': 74.3144, 'province': 'Gilgit-Baltistan', 'district': 'Gilgit', 'devices': 4},
    {'name': 'Bunji', 'lat': 35.6658, 'lon': 74.6358, 'province': 'Gilgit-Baltistan', 'district': 'Astore', 'devices': 2},
    {'name': 'Chilas', 'lat': 35.4207, 'lon': 74.0960, 'province': 'Gilgit-Baltistan', 'district': 'Diamer', 'devices': 4},
    {'name': 'Dasu', 'lat': 35.5180, 'lon': 73.3380, 'province': 'Khyber Pakhtunkhwa', 'district': 'Upper Kohistan', 'devices': 3},

    # UPPER KPK (High Flood Risk Zone)
    {'name': 'Pattan', 'lat': 34.8833, 'lon': 72.8833, 'province': 'Khyber Pakhtunkhwa', 'district': 'Kohistan', 'devices': 2},
    {'name': 'Besham', 'lat': 34.9260, 'lon': 72.8828, 'province': 'Khyber Pakhtunkhwa', 'district': 'Shangla', 'devices': 3},
    {'name': 'Thakot', 'lat': 34.5667, 'lon': 72.9167, 'province': 'Khyber Pakhtunkhwa', 'district': 'Battagram', 'devices': 2},
    {'name': 'Tarbela Dam', 'lat': 34.0894, 'lon': 72.7014, 'province': 'Khyber Pakhtunkhwa', 'district': 'Haripur', 'devices': 6},
    {'name': 'Ghazi', 'lat': 34.0500, 'lon': 72.4500, 'province': 'Khyber Pakhtunkhwa', 'district': 'Haripur', 'devices': 2},
    {'name': 'Haripur', 'lat': 33.9944, 'lon': 72.9347, 'province': 'Khyber Pakhtunkhwa', 'district': 'Haripur', 'devices': 2},

    # POTHOHAR & ATTOCK REGION
    {'name': 'Attock City', 'lat': 33.7681, 'lon': 72.3600, 'province': 'Punjab', 'district': 'Attock', 'devices': 4},
    {'name': 'Attock Khurd', 'lat': 33.8833, 'lon': 72.3667, 'province': 'Punjab', 'district': 'Attock', 'devices': 2},
    {'name': 'Kamra', 'lat': 33.8456, 'lon': 72.4011, 'province': 'Punjab', 'district': 'Attock', 'devices': 2},

    # MIANWALI & SURROUNDING
    {'name': 'Mianwali City', 'lat': 32.5853, 'lon': 71.5436, 'province': 'Punjab', 'district': 'Mianwali', 'devices': 4},
    {'name': 'Kundian', 'lat': 32.4583, 'lon': 71.4789, 'province': 'Punjab', 'district': 'Mianwali', 'devices': 2},
    {'name': 'Kalabagh', 'lat': 32.9622, 'lon': 71.5447, 'province': 'Punjab', 'district': 'Mianwali', 'devices': 3},
    {'name': 'Chashma', 'lat': 32.4333, 'lon': 71.4667, 'province': 'Punjab', 'district': 'Mianwali', 'devices': 3},
    {'name': 'Isakhel', 'lat': 32.6833, 'lon': 71.2667, 'province': 'Punjab', 'district': 'Mianwali', 'devices': 2},

    # DERA ISMAIL KHAN REGION (KPK Side)
    {'name': 'Dera Ismail Khan', 'lat': 31.8314, 'lon': 70.9020, 'province': 'Khyber Pakhtunkhwa', 'district': 'Dera Ismail Khan', 'devices': 5},
    {'name': 'Paharpur', 'lat': 31.9333, 'lon': 70.9667, 'province': 'Khyber Pakhtunkhwa', 'district': 'Dera Ismail Khan', 'devices': 2},
    {'name': 'Darya Khan', 'lat': 31.7833, 'lon': 71.1000, 'province': 'Punjab', 'district': 'Bhakkar', 'devices': 2},
    {'name': 'Bhakkar', 'lat': 31.6333, 'lon': 71.0667, 'province': 'Punjab', 'district': 'Bhakkar', 'devices': 3},

    # DERA GHAZI KHAN DIVISION (High Risk)
    {'name': 'Dera Ghazi Khan', 'lat': 30.0561, 'lon': 70.6345, 'province': 'Punjab', 'district': 'Dera Ghazi Khan', 'devices': 7},
    {'name': 'Taunsa', 'lat': 30.7035, 'lon': 70.6528, 'province': 'Punjab', 'district': 'Dera Ghazi Khan', 'devices': 3},
    {'name': 'Rajanpur', 'lat': 29.1044, 'lon': 70.3301, 'province': 'Punjab', 'district': 'Rajanpur', 'devices': 6},
    {'name': 'Rojhan', 'lat': 28.6975, 'lon': 69.9500, 'province': 'Punjab', 'district': 'Rajanpur', 'devices': 4},
    {'name': 'Jampur', 'lat': 29.6417, 'lon': 70.5897, 'province': 'Punjab', 'district': 'Rajanpur', 'devices': 3},

    # KASHMORE & UPPER SINDH
    {'name': 'Kashmore', 'lat': 28.4323, 'lon': 69.5843, 'province': 'Sindh', 'district': 'Kashmore', 'devices': 4},
    {'name': 'Kandhkot', 'lat': 28.2500, 'lon': 69.1833, 'province': 'Sindh', 'district': 'Kashmore', 'devices': 3},
    {'name': 'Guddu', 'lat': 28.4333, 'lon': 69.7333, 'province': 'Sindh', 'district': 'Kashmore', 'devices': 3},
    {'name': 'Ghotki', 'lat': 28.0097, 'lon': 69.3153, 'province': 'Sindh', 'district': 'Ghotki', 'devices': 5},
    {'name': 'Mirpur Mathelo', 'lat': 28.0208, 'lon': 69.5564, 'province': 'Sindh', 'district': 'Ghotki', 'devices': 3},

    # SUKKUR REGION (Critical Barrage Area)
    {'name': 'Sukkur', 'lat': 27.7052, 'lon': 68.8574, 'province': 'Sindh', 'district': 'Sukkur', 'devices': 7},
    {'name': 'Rohri', 'lat': 27.6917, 'lon': 68.8950, 'province': 'Sindh', 'district': 'Sukkur', 'devices': 4},
    {'name': 'Pano Aqil', 'lat': 27.8556, 'lon': 69.1103, 'province': 'Sindh', 'district': 'Sukkur', 'devices': 3},
    {'name': 'New Sukkur', 'lat': 27.7333, 'lon': 68.8333, 'province': 'Sindh', 'district': 'Sukkur', 'devices': 2},

    # KHAIRPUR & SURROUNDING
    {'name': 'Khairpur', 'lat': 27.5295, 'lon': 68.7590, 'province': 'Sindh', 'district': 'Khairpur', 'devices': 4},
    {'name': 'Kot Diji', 'lat': 27.3417, 'lon': 68.7078, 'province': 'Sindh', 'district': 'Khairpur', 'devices': 2},
    {'name': 'Gambat', 'lat': 27.3500, 'lon': 68.5333, 'province': 'Sindh', 'district': 'Khairpur', 'devices': 2},
    {'name': 'Ranipur', 'lat': 27.2833, 'lon': 68.5167, 'province': 'Sindh', 'district': 'Khairpur', 'devices': 2},

    # LARKANA & WEST SINDH
    {'name': 'Larkana', 'lat': 27.5600, 'lon': 68.2140, 'province': 'Sindh', 'district': 'Larkana', 'devices': 3},
    {'name': 'Mehar', 'lat': 27.1833, 'lon': 67.8167, 'province': 'Sindh', 'district': 'Dadu', 'devices': 2},
    {'name': 'Dadu', 'lat': 26.7310, 'lon': 67.7760, 'province': 'Sindh', 'district': 'Dadu', 'devices': 3},

    # NAUSHAHRO FEROZE & CENTRAL SINDH
    {'name': 'Naushahro Feroze', 'lat': 26.8417, 'lon': 68.1253, 'province': 'Sindh', 'district': 'Naushahro Feroze', 'devices': 2},
    {'name': 'Moro', 'lat': 26.6633, 'lon': 68.0028, 'province': 'Sindh', 'district': 'Naushahro Feroze', 'devices': 2},
    {'name': 'Kandiaro', 'lat': 27.0597, 'lon': 68.2108, 'province': 'Sindh', 'district': 'Naushahro Feroze', 'devices': 2},

    # HYDERABAD REGION (Dense Population)
    {'name': 'Hyderabad', 'lat': 25.3960, 'lon': 68.3578, 'province': 'Sindh', 'district': 'Hyderabad', 'devices': 10},
    {'name': 'Latifabad', 'lat': 25.3803, 'lon': 68.3369, 'province': 'Sindh', 'district': 'Hyderabad', 'devices': 3},
    {'name': 'Kotri', 'lat': 25.3650, 'lon': 68.3089, 'province': 'Sindh', 'district': 'Jamshoro', 'devices': 4},
    {'name': 'Jamshoro', 'lat': 25.4319, 'lon': 68.2808, 'province': 'Sindh', 'district': 'Jamshoro', 'devices': 3},
    {'name': 'Sehwan', 'lat': 26.4242, 'lon': 67.8611, 'province': 'Sindh', 'district': 'Jamshoro', 'devices': 2},

    # MATIARI & TANDO REGIONS
    {'name': 'Matiari', 'lat': 25.5975, 'lon': 68.4467, 'province': 'Sindh', 'district': 'Matiari', 'devices': 2},
    {'name': 'Hala', 'lat': 25.8167, 'lon': 68.4167, 'province': 'Sindh', 'district': 'Matiari', 'devices': 2},
    {'name': 'Tando Allahyar', 'lat': 25.4603, 'lon': 68.7169, 'province': 'Sindh', 'district': 'Tando Allahyar', 'devices': 2},
    {'name': 'Tando Muhammad Khan', 'lat': 25.1233, 'lon': 68.5378, 'province': 'Sindh', 'district': 'Tando Muhammad Khan', 'devices': 2},

    # THATTA & DELTA REGION
    {'name': 'Thatta', 'lat': 24.7471, 'lon': 67.9246, 'province': 'Sindh', 'district': 'Thatta', 'devices': 5},
    {'name': 'Makli', 'lat': 24.7667, 'lon': 68.0000, 'province': 'Sindh', 'district': 'Thatta', 'devices': 2},
    {'name': 'Keti Bandar', 'lat': 24.1444, 'lon': 67.4508, 'province': 'Sindh', 'district': 'Thatta', 'devices': 2},
    {'name': 'Shah Bandar', 'lat': 24.7167, 'lon': 67.7167, 'province': 'Sindh', 'district': 'Thatta', 'devices': 2},

    # KARACHI & INDUS DELTA
    {'name': 'Karachi Port', 'lat': 24.8608, 'lon': 67.0011, 'province': 'Sindh', 'district': 'Karachi', 'devices': 3},
    {'name': 'Keamari', 'lat': 24.8056, 'lon': 66.9778, 'province': 'Sindh', 'district': 'Karachi', 'devices': 2},
    {'name': 'Bin Qasim', 'lat': 24.7897, 'lon': 67.3644, 'province': 'Sindh', 'district': 'Karachi', 'devices': 4},
    {'name': 'Ibrahim Hyderi', 'lat': 24.8342, 'lon': 67.1856, 'province': 'Sindh', 'district': 'Karachi', 'devices': 2},
]

DEVICE_POSITIONS = ['North', 'South', 'East', 'West', 'Central', 'Upstream', 'Downstream']

# Reading bands as (cumulative probability, low fraction, span) of the danger level
READING_BANDS = [
    (0.10, 0.96, 0.08),  # red
    (0.25, 0.90, 0.05),  # darkOrange
    (0.45, 0.80, 0.10),  # orange
    (1.00, 0.50, 0.30),  # yellow
]

MAINTENANCE_PROBABILITY = 0.05

# Coordinate spread for devices sharing a city (degrees, ~5 km)
DEVICE_SPREAD_DEG = 0.05


def get_total_sensor_count():
    return sum(city['devices'] for city in INDUS_CITIES)


def _station_name(city_name, index):
    position = DEVICE_POSITIONS[index % len(DEVICE_POSITIONS)]
    number = index // len(DEVICE_POSITIONS) + 1
    suffix = f"-{number}" if number > 1 else ""
    return f"{city_name}-{position}{suffix}"


def _device_id(city_name, index):
    return f"ESP32-{city_name[:3].upper()}-{index + 1:03d}"


def _sample_current_level(danger_level, rng):
    variation = rng.random()
    for cumulative, low, span in READING_BANDS:
        if variation < cumulative:
            return danger_level * (low + rng.random() * span)
    return danger_level * 0.5


def _sample_trend(risk_level, rng):
    if is_critical(risk_level):
        return 'rising' if rng.random() > 0.3 else 'stable'
    return 'falling' if rng.random() > 0.5 else 'stable'


def generate_stations(rng=None, now=None, cities=None):
    """
    Generate one monitoring station per deployed device.

    About 10% of devices read in the red band, 15% dark orange, 20% orange
    and the rest yellow. Devices in the same city are scattered around the
    city centre.

    Args:
        rng (numpy.random.Generator, optional): Random source of the generation
        now (datetime, optional): Reference time for ``last_updated``
        cities (list of dict, optional): City catalogue, defaults to INDUS_CITIES

    Returns:
        list of Station
    """
    rng = make_rng(rng)
    now = now or datetime.now(timezone.utc)
    cities = INDUS_CITIES if cities is None else cities
    stations = []

    for city in cities:
        for i in range(city['devices']):
            normal_level = 50 + rng.random() * 30
            danger_level = normal_level + 40 + rng.random() * 20
            current_level = round_to(_sample_current_level(danger_level, rng), 2)
            danger_level = round_to(danger_level, 2)
            trend = _sample_trend(classify_risk(current_level, danger_level), rng)

            lat_offset = (rng.random() - 0.5) * DEVICE_SPREAD_DEG
            lon_offset = (rng.random() - 0.5) * DEVICE_SPREAD_DEG

            status = 'maintenance' if rng.random() < MAINTENANCE_PROBABILITY else 'active'
            last_updated = now - timedelta(seconds=float(rng.random() * 3600))

            station = Station(
                id=generate_id(rng),
                name=_station_name(city['name'], i),
                device_id=_device_id(city['name'], i),
                coordinates=(city['lon'] + lon_offset, city['lat'] + lat_offset),
                city=city['name'],
                district=city['district'],
                province=city['province'],
                current_level=current_level,
                danger_level=danger_level,
                normal_level=round_to(normal_level, 2),
                status=status,
                last_updated=last_updated,
                trend=trend,
                flow_rate=round_to(2000 + rng.random() * 8000, 2),
                temperature=round_to(15 + rng.random() * 20, 1),
                rainfall=round_to(rng.random() * 50, 1),
                battery_level=int(60 + rng.random() * 40),
            )
            stations.append(station)

    logger.info(f"Generated {len(stations)} monitoring stations across {len(cities)} cities")
    return stations


def simulate_reading(station, rng, now=None):
    """
    Advance a station by one simulated reading.

    The level drifts according to the station's trend and stays within
    [normal - 5, danger + 3] m. Returns a new Station.
    """
    if station.trend == 'rising':
        change = 0.1 + rng.random() * 0.4
    elif station.trend == 'falling':
        change = -(0.1 + rng.random() * 0.4)
    else:
        change = (rng.random() - 0.5) * 0.3

    level = min(station.danger_level + 3, max(station.normal_level - 5, station.current_level + change))
    level = max(0.0, level)
    battery = station.battery_level
    if battery is not None:
        battery = max(0, battery - int(rng.random() < 0.1))

    updated = station.with_reading(
        round_to(level, 2),
        last_updated=now or datetime.now(timezone.utc),
        battery_level=battery,
    )
    if updated.risk_level != station.risk_level:
        logger.info(f"{station.name}: risk level {station.risk_level} -> {updated.risk_level}")
    return updated


def get_stations_by_city(city, stations):
    return [s for s in stations if s.city == city]


def get_stations_by_risk(risk_level, stations):
    return [s for s in stations if s.risk_level == risk_level]


def get_critical_stations(stations):
    """Stations currently at darkOrange or red."""
    return [s for s in stations if s.is_critical]


def filter_by_area(stations, selected_area):
    """Stations in a city or district; all of them when no area is selected."""
    if not selected_area:
        return list(stations)
    return [s for s in stations if s.city == selected_area or s.district == selected_area]

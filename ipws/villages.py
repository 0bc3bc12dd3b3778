"""
IPWS Flood Early Warning - Village Generator

Villages are scattered around the major river cities. Each village's risk
tier comes from its distance to the river, not from a station reading, and
each one is linked to the nearest monitoring station of the same generation.
"""

import logging
import math

from ipws.models import Village
from ipws.thresholds import is_critical
from ipws.utils import distance_km, generate_id, round_to, make_rng

logger = logging.getLogger(__name__)

VILLAGE_CLUSTERS = [
    # Upper Indus
    {'city': 'Skardu', 'lat': 35.297, 'lon': 75.633, 'count': 5},
    {'city': 'Gilgit', 'lat': 35.921, 'lon': 74.314, 'count': 6},
    {'city': 'Chilas', 'lat': 35.421, 'lon': 74.096, 'count': 5},
    {'city': 'Besham', 'lat': 34.926, 'lon': 72.883, 'count': 8},
    {'city': 'Tarbela', 'lat': 34.089, 'lon': 72.701, 'count': 10},

    # Middle Indus
    {'city': 'Attock', 'lat': 33.768, 'lon': 72.360, 'count': 12},
    {'city': 'Mianwali', 'lat': 32.585, 'lon': 71.544, 'count': 10},
    {'city': 'Dera Ismail Khan', 'lat': 31.831, 'lon': 70.902, 'count': 15},
    {'city': 'Dera Ghazi Khan', 'lat': 30.056, 'lon': 70.635, 'count': 15},
    {'city': 'Rajanpur', 'lat': 29.104, 'lon': 70.330, 'count': 12},

    # Lower Indus
    {'city': 'Kashmore', 'lat': 28.432, 'lon': 69.584, 'count': 14},
    {'city': 'Sukkur', 'lat': 27.705, 'lon': 68.857, 'count': 18},
    {'city': 'Khairpur', 'lat': 27.530, 'lon': 68.759, 'count': 12},
    {'city': 'Hyderabad', 'lat': 25.396, 'lon': 68.358, 'count': 20},
    {'city': 'Thatta', 'lat': 24.747, 'lon': 67.925, 'count': 15},
    {'city': 'Karachi Delta', 'lat': 24.261, 'lon': 67.285, 'count': 10},
]

VILLAGE_PREFIXES = [
    'Kot', 'Chak', 'Khanpur', 'Rahimabad', 'Sultanpur', 'Fatehpur',
    'Islamabad', 'Mohammadpur', 'Alipur', 'Hussainabad', 'Wazirabad',
    'Nawabpur', 'Sharifabad', 'Karimabad', 'Yusufpur',
]

VILLAGE_SUFFIXES = ['', ' Kalan', ' Khurd', ' Sharif', ' Wala', ' Colony']

CLUSTER_PROVINCES = {
    'Skardu': 'Gilgit-Baltistan',
    'Gilgit': 'Gilgit-Baltistan',
    'Chilas': 'Gilgit-Baltistan',
    'Besham': 'Khyber Pakhtunkhwa',
    'Tarbela': 'Khyber Pakhtunkhwa',
    'Dera Ismail Khan': 'Khyber Pakhtunkhwa',
    'Attock': 'Punjab',
    'Mianwali': 'Punjab',
    'Dera Ghazi Khan': 'Punjab',
    'Rajanpur': 'Punjab',
    'Kashmore': 'Sindh',
    'Sukkur': 'Sindh',
    'Khairpur': 'Sindh',
    'Hyderabad': 'Sindh',
    'Thatta': 'Sindh',
    'Karachi Delta': 'Sindh',
}

# Lower Indus clusters are more densely settled
LOWER_INDUS_CITIES = frozenset({'Hyderabad', 'Sukkur', 'Thatta', 'Karachi Delta'})


def _village_population(cluster_city, rng):
    if cluster_city in LOWER_INDUS_CITIES:
        return int(2000 + rng.random() * 8000)
    return int(800 + rng.random() * 4000)


def _shelter_capacity(risk_level, population, rng):
    if is_critical(risk_level):
        return int(population * 0.9)
    if rng.random() > 0.5:
        return int(population * 0.7)
    return None


def find_nearest_station(coordinates, stations):
    """Nearest station to a (lon, lat) point, or None when there are none."""
    nearest = None
    min_distance = math.inf
    for station in stations:
        d = distance_km(coordinates[1], coordinates[0], station.latitude, station.longitude)
        if d < min_distance:
            min_distance = d
            nearest = station
    return nearest


def generate_villages(rng=None, stations=None, clusters=None):
    """
    Generate villages around the cluster cities.

    Args:
        rng (numpy.random.Generator, optional): Random source of the generation
        stations (list of Station, optional): Stations of the same generation,
            used to fill ``nearest_station_id``
        clusters (list of dict, optional): Cluster catalogue, defaults to VILLAGE_CLUSTERS

    Returns:
        list of Village
    """
    rng = make_rng(rng)
    clusters = VILLAGE_CLUSTERS if clusters is None else clusters
    villages = []
    village_index = 0

    for cluster in clusters:
        for _ in range(cluster['count']):
            # 0.05-0.2 degrees (~5-20 km) around the city centre
            angle = math.radians(rng.random() * 360)
            radius = 0.05 + rng.random() * 0.15
            lat = cluster['lat'] + radius * math.sin(angle)
            lon = cluster['lon'] + radius * math.cos(angle)

            distance_to_river = round_to(0.5 + rng.random() * 24.5, 2)
            population = _village_population(cluster['city'], rng)

            name = (VILLAGE_PREFIXES[village_index % len(VILLAGE_PREFIXES)] +
                    VILLAGE_SUFFIXES[int(rng.integers(0, len(VILLAGE_SUFFIXES)))])

            nearest = find_nearest_station((lon, lat), stations or [])

            village = Village(
                id=generate_id(rng),
                name=name,
                coordinates=(lon, lat),
                population=population,
                district=cluster['city'],
                province=CLUSTER_PROVINCES.get(cluster['city'], 'Punjab'),
                distance_to_river=distance_to_river,
                nearest_station_id=nearest.id if nearest else None,
                elevation=round_to(150 + rng.random() * 500, 1),
            )
            risk_level = village.risk_level
            village.evacuation_plan = is_critical(risk_level) or rng.random() > 0.4
            village.shelter_capacity = _shelter_capacity(risk_level, population, rng)

            villages.append(village)
            village_index += 1

    logger.info(f"Generated {len(villages)} villages in {len(clusters)} clusters")
    return villages


def get_villages_by_risk(risk_level, villages):
    return [v for v in villages if v.risk_level == risk_level]


def get_high_risk_villages(villages):
    """Villages at darkOrange or red."""
    return [v for v in villages if is_critical(v.risk_level)]


def calculate_population_at_risk(villages):
    return sum(v.population for v in get_high_risk_villages(villages))

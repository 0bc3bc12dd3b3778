"""
IPWS Flood Early Warning - Buffer Zone Engine

Builds one circular alert zone per monitoring station. The radius follows the
station's current risk tier (0.5 km yellow up to 2 km red), the population is
a density based estimate, and the villages whose point falls inside the zone
are found with a spatial join.

Key Functions:
- estimate_buffer_population: density x area estimate with regional variation
- generate_buffers: one BufferZone per station
- get_buffers_by_risk, get_critical_buffers, calculate_buffer_population: queries
- buffer_to_feature: GeoJSON Feature for map export
"""

import logging
import math

from shapely.geometry import Point
from shapely.strtree import STRtree

from ipws.map_utils import create_circle_polygon, circle_to_geojson
from ipws.models import BufferZone
from ipws.thresholds import get_buffer_radius, is_critical
from ipws.utils import generate_id, make_rng

logger = logging.getLogger(__name__)

# People per km2 around the main river cities
BUFFER_DENSITY = {
    'Hyderabad': 5000,
    'Sukkur': 4500,
    'Karachi Delta': 6000,
    'Dera Ghazi Khan': 3500,
    'Dera Ismail Khan': 3500,
    'Attock': 3000,
    'Kashmore': 2500,
    'Mianwali': 2000,
    'Tarbela': 2000,
    'Thatta': 2500,
    'Khairpur': 2500,
    'Rajanpur': 2000,
    'Besham': 1500,
    'Chilas': 1000,
    'Gilgit': 1200,
    'Skardu': 1000,
}

DEFAULT_BUFFER_DENSITY = 2000

# Multiplicative variation applied to each estimate: [0.7, 1.3)
JITTER_MIN = 0.7
JITTER_SPAN = 0.6


def estimate_buffer_population(radius_km, city, rng):
    """
    Estimate how many people live inside a buffer.

    Args:
        radius_km (float): Buffer radius (km)
        city (str): Station city, looked up in BUFFER_DENSITY
        rng (numpy.random.Generator): Random source for the regional variation

    Returns:
        int: floor(pi * r^2 * density * jitter)
    """
    density = BUFFER_DENSITY.get(city, DEFAULT_BUFFER_DENSITY)
    area = math.pi * radius_km * radius_km
    jitter = JITTER_MIN + rng.random() * JITTER_SPAN
    return int(math.floor(area * density * jitter))


def _village_index(villages):
    points = [Point(v.coordinates) for v in villages]
    return STRtree(points) if points else None


def find_villages_in_buffer(station, villages, tree=None):
    """
    Ids of the villages inside a station's buffer circle.

    Args:
        station (Station): Owning station, its tier sets the radius
        villages (list of Village): Candidate villages
        tree (shapely.strtree.STRtree, optional): Prebuilt index over the village points

    Returns:
        list of str: Village ids in input order
    """
    if not villages:
        return []
    if tree is None:
        tree = _village_index(villages)
    circle = create_circle_polygon(station.latitude, station.longitude,
                                   get_buffer_radius(station.risk_level))
    hits = tree.query(circle, predicate='contains')
    return [villages[i].id for i in sorted(int(i) for i in hits)]


def generate_buffers(stations, villages=None, rng=None):
    """
    Generate one buffer zone per station.

    Args:
        stations (list of Station): Stations of the current generation
        villages (list of Village, optional): Villages for the spatial join
        rng (numpy.random.Generator, optional): Random source of the generation

    Returns:
        list of BufferZone
    """
    rng = make_rng(rng)
    villages = list(villages or [])
    tree = _village_index(villages)

    buffers = []
    for station in stations:
        risk_level = station.risk_level
        buffer = BufferZone(
            id=generate_id(rng),
            station=station,
            population=estimate_buffer_population(get_buffer_radius(risk_level), station.city, rng),
            affected_villages=find_villages_in_buffer(station, villages, tree) if tree else (),
            risk_level_at_creation=risk_level,
        )
        buffers.append(buffer)

    joined = sum(1 for b in buffers if b.affected_villages)
    logger.info(f"Generated {len(buffers)} buffer zones, {joined} contain villages")
    return buffers


def get_buffers_by_risk(risk_level, buffers):
    return [b for b in buffers if b.risk_level == risk_level]


def get_critical_buffers(buffers):
    """Buffers whose station is at darkOrange or red."""
    return [b for b in buffers if is_critical(b.risk_level)]


def calculate_buffer_population(buffers):
    return sum(b.population for b in buffers)


def buffer_to_feature(buffer):
    """GeoJSON Polygon Feature for a buffer zone."""
    lon, lat = buffer.coordinates
    return {
        'type': 'Feature',
        'geometry': circle_to_geojson(lat, lon, buffer.radius),
        'properties': {
            'bufferId': buffer.id,
            'stationId': buffer.station_id,
            'radius': buffer.radius,
            'type': buffer.type,
            'riskLevel': buffer.risk_level,
            'population': buffer.population,
            'stale': buffer.is_stale,
        },
    }

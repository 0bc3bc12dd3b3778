"""
IPWS Flood Early Warning - Evacuation Router

Assigns every high-risk village (orange, darkOrange, red) to its nearest
usable shelter and sketches a straight-line route between them. There is no
road network behind these routes: road type, travel time and route status
are heuristics standing in for a real traffic and road-condition feed.

Key Functions:
- classify_road_type / estimate_travel_time: distance based road heuristics
- generate_waypoints: interior points along the straight line, with jitter
- generate_evacuation_routes: one EvacuationRoute per high-risk village
- get_routes_by_status / get_critical_routes: queries
"""

import logging
import math

from ipws.models import EvacuationRoute
from ipws.shelters import find_nearest_shelter
from ipws.thresholds import RED, DARK_ORANGE, is_high_risk
from ipws.utils import distance_between, generate_id, interpolate, make_rng, round_to

logger = logging.getLogger(__name__)

# Distance buckets (km, exclusive upper bounds) for the road a route is assumed to use
ROAD_TYPE_THRESHOLDS = [
    ('paved', 10.0),
    ('highway', 30.0),
]
DEFAULT_ROAD_TYPE = 'unpaved'

# Average travel speed (km/h) per road type
ROAD_SPEEDS = {
    'paved': 40,
    'highway': 60,
    'unpaved': 25,
}

WAYPOINT_COUNT = 2

# Maximum deviation (degrees) applied independently to each waypoint axis
WAYPOINT_JITTER_DEG = 0.01

# Routes must carry more people than the village holds
ROUTE_CAPACITY_FACTOR = 1.2

CRITICAL_ROUTE_STATUSES = frozenset({'blocked', 'unsafe'})


def classify_road_type(distance_km):
    for road_type, upper_bound in ROAD_TYPE_THRESHOLDS:
        if distance_km < upper_bound:
            return road_type
    return DEFAULT_ROAD_TYPE


def estimate_travel_time(distance_km, road_type):
    """Travel time in whole minutes, rounded up."""
    return int(math.ceil(distance_km / ROAD_SPEEDS[road_type] * 60))


def generate_waypoints(start, end, rng, count=WAYPOINT_COUNT):
    """
    Interior points between two (lon, lat) pairs.

    Points sit at t = i / (count + 1) along the straight line, each axis
    shifted by up to WAYPOINT_JITTER_DEG in either direction.

    Args:
        start (tuple): (lon, lat) of the village
        end (tuple): (lon, lat) of the shelter
        rng (numpy.random.Generator): Random source for the jitter
        count (int): Number of interior points

    Returns:
        list of tuple: Ordered (lon, lat) waypoints
    """
    waypoints = []
    for i in range(1, count + 1):
        lon, lat = interpolate(start, end, i / (count + 1))
        d_lon = (rng.random() - 0.5) * 2 * WAYPOINT_JITTER_DEG
        d_lat = (rng.random() - 0.5) * 2 * WAYPOINT_JITTER_DEG
        waypoints.append((lon + d_lon, lat + d_lat))
    return waypoints


def sample_route_status(risk_level, rng):
    """
    Route condition for a village's tier.

    Red villages: 30% congested, the rest split between open and unsafe.
    darkOrange: 20% congested, otherwise open. Orange routes are open.
    """
    if risk_level == RED:
        if rng.random() > 0.7:
            return 'congested'
        return 'open' if rng.random() > 0.5 else 'unsafe'
    if risk_level == DARK_ORANGE:
        return 'congested' if rng.random() > 0.8 else 'open'
    return 'open'


def select_shelter(village, shelters):
    """
    Shelter for a village and whether it is a fallback choice.

    Returns (shelter, fallback). When no shelter is eligible the first one in
    the list is used and fallback is True; with no shelters at all the result
    is (None, False).
    """
    if not shelters:
        return None, False
    shelter = find_nearest_shelter(village.latitude, village.longitude, shelters)
    if shelter is None:
        return shelters[0], True
    return shelter, False


def generate_evacuation_routes(villages, shelters, rng=None):
    """
    Generate evacuation routes for the high-risk villages.

    Args:
        villages (list of Village): Villages of the current generation
        shelters (list of Shelter): Shelters of the current generation
        rng (numpy.random.Generator, optional): Random source of the generation

    Returns:
        list of EvacuationRoute: One per orange, darkOrange or red village,
            empty when there are no shelters
    """
    rng = make_rng(rng)
    high_risk = [v for v in villages if is_high_risk(v.risk_level)]

    if not shelters:
        if high_risk:
            logger.warning(f"No shelters registered, {len(high_risk)} high-risk villages left without routes")
        return []

    routes = []
    fallbacks = 0
    for village in high_risk:
        shelter, fallback = select_shelter(village, shelters)
        if fallback:
            fallbacks += 1

        distance = distance_between(village.coordinates, shelter.coordinates)
        road_type = classify_road_type(distance)

        routes.append(EvacuationRoute(
            id=generate_id(rng),
            name=f"{village.name} → {shelter.name}",
            start_point=village.coordinates,
            end_point=shelter.coordinates,
            waypoints=generate_waypoints(village.coordinates, shelter.coordinates, rng),
            distance=round_to(distance, 2),
            estimated_time=estimate_travel_time(distance, road_type),
            capacity=int(village.population * ROUTE_CAPACITY_FACTOR),
            road_type=road_type,
            status=sample_route_status(village.risk_level, rng),
            affected_villages=[village.id],
            destination_shelter=shelter.id,
            fallback=fallback,
        ))

    if fallbacks:
        logger.warning(f"{fallbacks} routes fell back to {shelters[0].name}: no shelter had capacity left")
    logger.info(f"Generated {len(routes)} evacuation routes for {len(high_risk)} high-risk villages")
    return routes


def get_routes_by_status(status, routes):
    return [r for r in routes if r.status == status]


def get_critical_routes(routes):
    """Routes that are blocked or unsafe."""
    return [r for r in routes if r.status in CRITICAL_ROUTE_STATUSES]

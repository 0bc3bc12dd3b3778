"""
IPWS Flood Early Warning - Map Utility Functions

Geometry helpers for the buffer zones drawn around monitoring stations.
Circles are built on the sphere with great circle destination formulas so the
ring keeps its radius at any latitude, then handed to shapely for spatial
joins and to GeoJSON for export.

Key Functions:
- create_circle_coordinates: Closed ring of (lon, lat) points around a center
- create_circle_polygon: The same ring as a shapely Polygon
- circle_to_geojson: GeoJSON Polygon geometry for a buffer ring
"""

from math import sin, cos, asin, atan2, radians, degrees

from shapely.geometry import Polygon, mapping

from ipws.utils import EARTH_RADIUS_KM

DEFAULT_CIRCLE_POINTS = 64


def create_circle_coordinates(center_lat, center_lon, radius_km, points=DEFAULT_CIRCLE_POINTS):
    """
    Generates the coordinates of a circle of constant great circle radius.

    For each bearing around the center, the destination point is:
        lat2 = asin(sin(lat1) * cos(d/R) + cos(lat1) * sin(d/R) * cos(bearing))
        lon2 = lon1 + atan2(sin(bearing) * sin(d/R) * cos(lat1), cos(d/R) - sin(lat1) * sin(lat2))

    Args:
        center_lat (float): Latitude of the circle's center, in decimal degrees.
        center_lon (float): Longitude of the circle's center, in decimal degrees.
        radius_km (float): Radius of the circle in kilometers, must be positive.
        points (int, optional): Number of perimeter points (default 64).

    Returns:
        list: Closed ring of [longitude, latitude] pairs (first point repeated at the end).

    Raises:
        ValueError: If radius_km is not positive or points < 3.
    """
    if radius_km <= 0:
        raise ValueError(f"Circle radius must be positive, got {radius_km}")
    if points < 3:
        raise ValueError(f"A circle needs at least 3 points, got {points}")

    center_lat = max(-90.0, min(90.0, center_lat))
    angular_distance = radius_km / EARTH_RADIUS_KM
    lat1 = radians(center_lat)
    lon1 = radians(center_lon)

    coordinates = []
    for i in range(points):
        bearing = radians(i * (360.0 / points))

        lat2 = asin(sin(lat1) * cos(angular_distance) +
                    cos(lat1) * sin(angular_distance) * cos(bearing))

        # Longitude is undefined at the poles
        if abs(cos(lat2)) < 1e-10:
            lon2 = lon1
        else:
            lon2 = lon1 + atan2(sin(bearing) * sin(angular_distance) * cos(lat1),
                                cos(angular_distance) - sin(lat1) * sin(lat2))

        lon2 = degrees(lon2)
        while lon2 > 180:
            lon2 -= 360
        while lon2 < -180:
            lon2 += 360

        coordinates.append([lon2, degrees(lat2)])

    coordinates.append(list(coordinates[0]))
    return coordinates


def create_circle_polygon(center_lat, center_lon, radius_km, points=DEFAULT_CIRCLE_POINTS):
    """Shapely Polygon for a geodesic circle, in lon/lat degrees."""
    return Polygon(create_circle_coordinates(center_lat, center_lon, radius_km, points))


def circle_to_geojson(center_lat, center_lon, radius_km, points=DEFAULT_CIRCLE_POINTS):
    """GeoJSON geometry dict for a geodesic circle."""
    geometry = mapping(create_circle_polygon(center_lat, center_lon, radius_km, points))
    # mapping() yields tuples; GeoJSON consumers expect lists
    return {
        'type': geometry['type'],
        'coordinates': [[list(p) for p in ring] for ring in geometry['coordinates']],
    }

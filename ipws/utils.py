"""
IPWS Flood Early Warning - Utility Functions and Constants Module

This module provides the geodesic helpers and shared constants used throughout
the warning engine. It includes:

1. Geodetic constants for distance calculations
2. Unit conversion utilities (angles, distance)
3. Great-circle distance (Haversine) between two coordinates
4. Identifier and rounding helpers shared by the generators

Every function here is pure. Distance is evaluated combinatorially
(station x shelter, village x shelter) so it must stay deterministic and cheap.
"""

import math

import numpy as np

# =============================================================================
# GEODETIC CONSTANTS
# =============================================================================

# Earth's mean radius (kilometers) - used for great circle distance calculations
EARTH_RADIUS_KM = 6371.0

# Alphabet used for short random identifiers (base 36)
ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

# Length of generated identifiers
ID_LENGTH = 7

# =============================================================================
# UNIT CONVERSION UTILITIES
# =============================================================================

def deg_to_rad(degrees):
    """
    Convert decimal degrees to radians.

    Parameters
    ----------
    degrees : float
        Angle in decimal degrees

    Returns
    -------
    float
        Angle in radians
    """
    return degrees * (math.pi / 180.0)

def rad_to_deg(radians):
    """
    Convert radians to decimal degrees.

    Parameters
    ----------
    radians : float
        Angle in radians

    Returns
    -------
    float
        Angle in decimal degrees
    """
    return radians * (180.0 / math.pi)

def km_to_m(km):
    """Convert kilometers to meters."""
    return km * 1000.0

def m_to_km(m):
    """Convert meters to kilometers."""
    return m / 1000.0

# =============================================================================
# GEODESIC FUNCTIONS
# =============================================================================

def distance_km(lat1, lon1, lat2, lon2):
    """
    Great-circle distance between two points using the Haversine formula.

    Parameters
    ----------
    lat1, lon1 : float
        Latitude and longitude of the first point in decimal degrees
    lat2, lon2 : float
        Latitude and longitude of the second point in decimal degrees

    Returns
    -------
    float
        Distance in kilometers (0.0 for identical points)

    Mathematical Form
    -----------------
    a = sin²(Δφ/2) + cos φ1 · cos φ2 · sin²(Δλ/2)
    d = 2R · atan2(√a, √(1−a))
    """
    d_lat = deg_to_rad(lat2 - lat1)
    d_lon = deg_to_rad(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2 +
         math.cos(deg_to_rad(lat1)) * math.cos(deg_to_rad(lat2)) *
         math.sin(d_lon / 2) ** 2)
    # Guard against rounding pushing a marginally outside [0, 1]
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c

def distance_between(coords_a, coords_b):
    """Haversine distance in km between two (lon, lat) pairs."""
    return distance_km(coords_a[1], coords_a[0], coords_b[1], coords_b[0])

def interpolate(start, end, t):
    """Linear interpolation between two (lon, lat) pairs at fraction t."""
    return (
        start[0] + (end[0] - start[0]) * t,
        start[1] + (end[1] - start[1]) * t,
    )

# =============================================================================
# GENERATOR HELPERS
# =============================================================================

def generate_id(rng):
    """
    Generate a short base-36 identifier from the supplied random source.

    Parameters
    ----------
    rng : numpy.random.Generator
        Random source of the current dataset generation

    Returns
    -------
    str
        Identifier of ID_LENGTH characters
    """
    indices = rng.integers(0, len(ID_ALPHABET), size=ID_LENGTH)
    return "".join(ID_ALPHABET[i] for i in indices)

def round_to(value, places):
    """Round a float to a fixed number of decimals, returning a plain float."""
    return float(round(float(value), places))

def make_rng(seed=None):
    """Create the random source for one dataset generation."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)

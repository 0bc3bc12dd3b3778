"""
IPWS Flood Early Warning - Map Animation Steps

Pure step functions for the two animated map layers: particles flowing along
the river and ripples expanding around critical stations. The renderer owns
the clock and calls advance() with the elapsed time; nothing here keeps
state between calls.

Key Functions:
- extract_paths: coordinate paths from GeoJSON lines and polygon rings
- initialize_particles: particles at random positions along the paths
- advance: next RiverAnimationState after delta_ms milliseconds
- ripple_frame / ripple_layers: ripple radius and opacity for a point in time
"""

from ipws.thresholds import RED, RISK_RGB, DARK_ORANGE, is_critical
from ipws.utils import interpolate, make_rng

DEFAULT_PARTICLE_COUNT = 150
DEFAULT_PARTICLE_SPEED = 1.5

# Progress per millisecond for a speed multiplier of 1
BASE_PARTICLE_RATE = 0.001 * 0.7

RIPPLE_PERIOD_S = 2.0
RIPPLE_STAGGER_S = 0.5
RIPPLE_EXPANSION_M_PER_S = 15000.0

# Two filled inner ripples and one hollow outer ring per station
FILLED_RIPPLES = (0, 1)
HOLLOW_RIPPLE = 2


class Particle:
    """A particle on one river path; progress is the fraction of the path covered."""

    __slots__ = ('position', 'progress', 'line_index', 'segment_index')

    def __init__(self, position, progress, line_index, segment_index):
        self.position = tuple(position)
        self.progress = progress
        self.line_index = line_index
        self.segment_index = segment_index

    def __repr__(self):
        return (f"Particle(line={self.line_index}, segment={self.segment_index}, "
                f"progress={self.progress:.3f})")


class RiverAnimationState:
    """River paths, the particles on them and the elapsed animation time (ms)."""

    def __init__(self, paths, particles, time_ms=0.0):
        self.paths = tuple(tuple(tuple(p) for p in path) for path in paths)
        self.particles = tuple(particles)
        self.time_ms = time_ms


def extract_paths(geojson):
    """
    Coordinate paths from a GeoJSON FeatureCollection or Feature.

    LineStrings give one path, MultiLineStrings one per line and Polygons one
    per ring. Other geometry types are skipped.
    """
    paths = []

    def process_feature(feature):
        geometry = feature.get('geometry') or {}
        geometry_type = geometry.get('type')
        coordinates = geometry.get('coordinates') or []
        if geometry_type == 'LineString':
            paths.append([tuple(p[:2]) for p in coordinates])
        elif geometry_type in ('MultiLineString', 'Polygon'):
            for line in coordinates:
                paths.append([tuple(p[:2]) for p in line])

    if geojson.get('type') == 'FeatureCollection':
        for feature in geojson.get('features', []):
            process_feature(feature)
    elif geojson.get('type') == 'Feature':
        process_feature(geojson)
    return paths


def _locate(path, progress):
    segments = len(path) - 1
    segment_float = progress * segments
    segment_index = int(segment_float)
    segment_progress = segment_float - segment_index
    segment_index = min(segment_index, segments - 1)
    start = path[segment_index]
    end = path[min(segment_index + 1, len(path) - 1)]
    return interpolate(start, end, segment_progress), segment_index


def initialize_particles(paths, count=DEFAULT_PARTICLE_COUNT, rng=None):
    """
    Scatter particles over the river paths.

    Draws that land on a path with fewer than two points produce no particle,
    so the result can hold fewer than ``count`` particles.

    Returns:
        RiverAnimationState
    """
    rng = make_rng(rng)
    particles = []
    if paths:
        for _ in range(count):
            line_index = int(rng.integers(0, len(paths)))
            path = paths[line_index]
            if len(path) < 2:
                continue
            progress = float(rng.random())
            position, segment_index = _locate(path, progress)
            particles.append(Particle(position, progress, line_index, segment_index))
    return RiverAnimationState(paths, particles)


def advance(state, delta_ms, particle_speed=DEFAULT_PARTICLE_SPEED):
    """
    Move every particle forward by delta_ms milliseconds.

    Progress wraps back to the start of the path once it reaches 1.

    Args:
        state (RiverAnimationState): Current state
        delta_ms (float): Elapsed time since the previous frame (ms), >= 0
        particle_speed (float): Speed multiplier

    Returns:
        RiverAnimationState: A new state; the input is not modified
    """
    if delta_ms < 0:
        raise ValueError(f"delta_ms cannot be negative, got {delta_ms}")
    rate = particle_speed * BASE_PARTICLE_RATE

    particles = []
    for particle in state.particles:
        path = state.paths[particle.line_index] if particle.line_index < len(state.paths) else ()
        if len(path) < 2:
            particles.append(particle)
            continue
        progress = (particle.progress + delta_ms * rate) % 1.0
        position, segment_index = _locate(path, progress)
        particles.append(Particle(position, progress, particle.line_index, segment_index))

    return RiverAnimationState(state.paths, particles, state.time_ms + delta_ms)


def ripple_frame(time_ms, ripple_index):
    """
    Radius and opacity of one ripple at a point in time.

    Each ripple restarts every 2 s and grows by 15 km per second; ripple n
    lags ripple 0 by n x 0.5 s.

    Returns:
        tuple: (radius_m, fill_alpha, line_alpha), alphas in 0-255
    """
    ripple_time = time_ms / 1000.0 - ripple_index * RIPPLE_STAGGER_S
    phase = ripple_time % RIPPLE_PERIOD_S
    radius = phase * RIPPLE_EXPANSION_M_PER_S
    fill_alpha = max(0.0, 150 - phase * 75)
    line_alpha = max(0.0, 200 - phase * 100)
    return radius, fill_alpha, line_alpha


def ripple_color(risk_level):
    return RISK_RGB[RED] if risk_level == RED else RISK_RGB[DARK_ORANGE]


def ripple_layers(stations, time_ms, selected_area):
    """
    Ripple circles for the critical stations of a selected area.

    Ripples are only drawn while an area is selected.

    Returns:
        list of dict: coordinates, radius, color (RGBA) and filled flag per ripple
    """
    if not selected_area:
        return []
    ripples = []
    for station in stations:
        if not is_critical(station.risk_level):
            continue
        if station.city != selected_area and station.district != selected_area:
            continue
        rgb = ripple_color(station.risk_level)
        for index in FILLED_RIPPLES + (HOLLOW_RIPPLE,):
            radius, fill_alpha, line_alpha = ripple_frame(time_ms, index)
            filled = index != HOLLOW_RIPPLE
            ripples.append({
                'stationId': station.id,
                'coordinates': list(station.coordinates),
                'radius': radius,
                'color': list(rgb) + [fill_alpha if filled else line_alpha],
                'filled': filled,
            })
    return ripples

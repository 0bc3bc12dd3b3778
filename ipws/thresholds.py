"""
Risk tiers, warning thresholds and tier attributes for the IPWS 4-tier system.

This is the single canonical classifier: stations, villages, buffers,
population estimates, routes and alerts all classify through it.
"""
import math

from ipws.translation_utils import get_translation

# ==========================================
# Risk tiers (ordered by severity)
# ==========================================
YELLOW = 'yellow'
ORANGE = 'orange'
DARK_ORANGE = 'darkOrange'
RED = 'red'

RISK_LEVELS = (YELLOW, ORANGE, DARK_ORANGE, RED)

RISK_RANKS = {tier: rank for rank, tier in enumerate(RISK_LEVELS)}

CRITICAL_LEVELS = frozenset({DARK_ORANGE, RED})
HIGH_RISK_LEVELS = frozenset({ORANGE, DARK_ORANGE, RED})

# ==========================================
# Water level (percentage of danger level)
# ==========================================
# Evaluated highest-first; anything below the orange line is yellow.
RISK_THRESHOLDS = [
    (RED, 95.0),
    (DARK_ORANGE, 90.0),
    (ORANGE, 80.0),
    (YELLOW, 60.0),
]

# Warning level as a fraction of the danger level
WARNING_LEVEL_RATIO = 0.8

# ==========================================
# Distance to river (km), villages
# ==========================================
# Upper bounds are exclusive: a village exactly 2 km out is darkOrange.
DISTANCE_THRESHOLDS = [
    (RED, 2.0),
    (DARK_ORANGE, 5.0),
    (ORANGE, 10.0),
]

# ==========================================
# Tier attributes
# ==========================================
RISK_BUFFER_ZONES = {
    YELLOW: 0.5,
    ORANGE: 1.0,
    DARK_ORANGE: 1.5,
    RED: 2.0,
}

RISK_COLORS = {
    YELLOW: '#fbbf24',
    ORANGE: '#f97316',
    DARK_ORANGE: '#ea580c',
    RED: '#dc2626',
}

RISK_RGB = {
    YELLOW: (251, 191, 36),
    ORANGE: (249, 115, 22),
    DARK_ORANGE: (234, 88, 12),
    RED: (220, 38, 38),
}

BUFFER_TYPES = {
    YELLOW: 'outer',
    ORANGE: 'middle',
    DARK_ORANGE: 'inner',
    RED: 'inner',
}

def get_risk_labels(language=None):
    return {
        YELLOW: get_translation("risk.labels.yellow", "Mild Alert", language),
        ORANGE: get_translation("risk.labels.orange", "Moderate Threat", language),
        DARK_ORANGE: get_translation("risk.labels.darkOrange", "Very Dangerous", language),
        RED: get_translation("risk.labels.red", "Critical", language),
    }

# ==========================================
# Shelter occupancy
# ==========================================
SHELTER_FULL_RATIO = 0.95
SHELTER_PARTIAL_RATIO = 0.70

SHELTER_AVAILABLE = 'available'
SHELTER_PARTIAL = 'partial'
SHELTER_FULL = 'full'
SHELTER_CLOSED = 'closed'

UNAVAILABLE_SHELTER_STATUSES = frozenset({SHELTER_FULL, SHELTER_CLOSED})

# ==========================================
# Classifiers
# ==========================================
def calculate_risk_percentage(current_level, danger_level):
    """Current level as a percentage of the danger level."""
    if not math.isfinite(danger_level) or danger_level <= 0:
        raise ValueError(f"Danger level must be positive, got {danger_level}")
    if not math.isfinite(current_level):
        raise ValueError(f"Current level must be finite, got {current_level}")
    return current_level * 100.0 / danger_level

def classify_risk(current_level, danger_level):
    """
    Map a water level reading onto one of the four risk tiers.

    Tiers are checked highest-first so a reading at 96% is red even though it
    also clears the lower lines. Readings under 60% stay yellow: the system
    has no safe tier.

    Args:
        current_level (float): Measured water level (m)
        danger_level (float): Danger threshold for the station (m), must be > 0

    Returns:
        str: One of 'yellow', 'orange', 'darkOrange', 'red'

    Raises:
        ValueError: If danger_level is not positive or either level is not finite
    """
    percentage = calculate_risk_percentage(current_level, danger_level)
    for tier, threshold in RISK_THRESHOLDS:
        if percentage >= threshold:
            return tier
    return YELLOW

def classify_by_distance(distance_km):
    """
    Map a village's distance to the river onto a risk tier.

    Args:
        distance_km (float): Distance to the river centreline (km), >= 0

    Returns:
        str: Risk tier, non-increasing in severity as distance grows
    """
    if not math.isfinite(distance_km) or distance_km < 0:
        raise ValueError(f"Distance to river cannot be negative, got {distance_km}")
    for tier, upper_bound in DISTANCE_THRESHOLDS:
        if distance_km < upper_bound:
            return tier
    return YELLOW

def _check_tier(risk_level):
    if risk_level not in RISK_RANKS:
        raise ValueError(f"Unknown risk level: {risk_level!r}")
    return risk_level

def get_buffer_radius(risk_level):
    """Buffer radius in km for a tier."""
    return RISK_BUFFER_ZONES[_check_tier(risk_level)]

def get_buffer_type(risk_level):
    return BUFFER_TYPES[_check_tier(risk_level)]

def get_risk_color(risk_level):
    """Hex color for a tier; unknown values render as yellow."""
    return RISK_COLORS.get(risk_level, RISK_COLORS[YELLOW])

def get_risk_label(risk_level, language=None):
    return get_risk_labels(language).get(risk_level, get_translation("risk.labels.unknown", "Unknown", language))

def get_risk_rank(risk_level):
    """Ordinal severity: yellow 0 < orange 1 < darkOrange 2 < red 3."""
    return RISK_RANKS[_check_tier(risk_level)]

def is_critical(risk_level):
    return risk_level in CRITICAL_LEVELS

def is_high_risk(risk_level):
    return risk_level in HIGH_RISK_LEVELS

def get_shelter_status(current_occupancy, capacity, closed=False):
    """
    Derive a shelter's status from its occupancy ratio.

    'closed' cannot be derived from occupancy; it only comes from the
    external override flag.
    """
    if closed:
        return SHELTER_CLOSED
    if capacity <= 0:
        raise ValueError(f"Shelter capacity must be positive, got {capacity}")
    occupancy_rate = current_occupancy / capacity
    if occupancy_rate >= SHELTER_FULL_RATIO:
        return SHELTER_FULL
    if occupancy_rate >= SHELTER_PARTIAL_RATIO:
        return SHELTER_PARTIAL
    return SHELTER_AVAILABLE

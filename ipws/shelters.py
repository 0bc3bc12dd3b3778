"""
IPWS Flood Early Warning - Shelter Registry

Relief camps, schools and public buildings on high ground near the main
river cities. Occupancy is sampled per generation; status is always derived
from occupancy (see ipws.thresholds.get_shelter_status).
"""

import logging
import math

from ipws.models import Shelter
from ipws.utils import distance_km, generate_id, make_rng

logger = logging.getLogger(__name__)

SHELTER_LOCATIONS = [
    # Upper Indus
    {'city': 'Skardu', 'name': 'Skardu Central School', 'lat': 35.3100, 'lon': 75.6500, 'type': 'school', 'capacity': 500},
    {'city': 'Gilgit', 'name': 'Gilgit Community Center', 'lat': 35.9300, 'lon': 74.3300, 'type': 'community-center', 'capacity': 800},
    {'city': 'Chilas', 'name': 'Chilas Government College', 'lat': 35.4350, 'lon': 74.1100, 'type': 'school', 'capacity': 400},
    {'city': 'Besham', 'name': 'Besham Relief Camp', 'lat': 34.9400, 'lon': 72.9000, 'type': 'camp', 'capacity': 600},
    {'city': 'Tarbela', 'name': 'Tarbela Relief Station', 'lat': 34.1000, 'lon': 72.7200, 'type': 'government-building', 'capacity': 1000},

    # Middle Indus
    {'city': 'Attock', 'name': 'Attock Fort Relief Center', 'lat': 33.7800, 'lon': 72.3800, 'type': 'government-building', 'capacity': 1200},
    {'city': 'Attock', 'name': 'Attock City Hall', 'lat': 33.7650, 'lon': 72.3500, 'type': 'community-center', 'capacity': 800},
    {'city': 'Mianwali', 'name': 'Mianwali Stadium', 'lat': 32.5950, 'lon': 71.5600, 'type': 'other', 'capacity': 1500},
    {'city': 'Dera Ismail Khan', 'name': 'DI Khan Relief Camp 1', 'lat': 31.8450, 'lon': 70.9200, 'type': 'camp', 'capacity': 2000},
    {'city': 'Dera Ismail Khan', 'name': 'DI Khan Community Hall', 'lat': 31.8200, 'lon': 70.8900, 'type': 'community-center', 'capacity': 1000},
    {'city': 'Dera Ghazi Khan', 'name': 'DG Khan Sports Complex', 'lat': 30.0700, 'lon': 70.6500, 'type': 'other', 'capacity': 2500},
    {'city': 'Dera Ghazi Khan', 'name': 'DG Khan Relief Station', 'lat': 30.0450, 'lon': 70.6200, 'type': 'camp', 'capacity': 1800},
    {'city': 'Rajanpur', 'name': 'Rajanpur School Complex', 'lat': 29.1150, 'lon': 70.3450, 'type': 'school', 'capacity': 700},

    # Lower Indus
    {'city': 'Kashmore', 'name': 'Kashmore Relief Center', 'lat': 28.4450, 'lon': 69.6000, 'type': 'government-building', 'capacity': 1500},
    {'city': 'Sukkur', 'name': 'Sukkur Barrage Camp', 'lat': 27.7200, 'lon': 68.8750, 'type': 'camp', 'capacity': 3000},
    {'city': 'Sukkur', 'name': 'Sukkur City Stadium', 'lat': 27.6950, 'lon': 68.8450, 'type': 'other', 'capacity': 2000},
    {'city': 'Khairpur', 'name': 'Khairpur Relief Station', 'lat': 27.5400, 'lon': 68.7750, 'type': 'community-center', 'capacity': 1200},
    {'city': 'Hyderabad', 'name': 'Hyderabad Central Camp', 'lat': 25.4100, 'lon': 68.3750, 'type': 'camp', 'capacity': 4000},
    {'city': 'Hyderabad', 'name': 'Hyderabad Sports Complex', 'lat': 25.3850, 'lon': 68.3450, 'type': 'other', 'capacity': 2500},
    {'city': 'Thatta', 'name': 'Thatta Relief Center', 'lat': 24.7600, 'lon': 67.9400, 'type': 'government-building', 'capacity': 1500},
    {'city': 'Karachi Delta', 'name': 'Karachi Coastal Camp', 'lat': 24.2750, 'lon': 67.3000, 'type': 'camp', 'capacity': 2000},
]

COMMON_FACILITIES = ('food', 'water', 'sanitation')
MEDICAL_FACILITIES = COMMON_FACILITIES + ('medical',)
FULL_FACILITIES = MEDICAL_FACILITIES + ('electricity', 'communication')

# Sampled occupancy stays within 0-40% of capacity
INITIAL_OCCUPANCY_RATIO = 0.4

PHONE_AREA_CODES = ['051', '042', '021', '061', '071']

SHELTER_PROVINCES = {
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


def get_facilities(capacity):
    """Larger shelters are better equipped."""
    if capacity >= 2000:
        return FULL_FACILITIES
    if capacity >= 1000:
        return MEDICAL_FACILITIES
    return COMMON_FACILITIES


def generate_phone_number(rng):
    code = PHONE_AREA_CODES[int(rng.integers(0, len(PHONE_AREA_CODES)))]
    number = int(1000000 + rng.random() * 9000000)
    return f"+92-{code}-{number}"


def generate_shelters(rng=None, locations=None):
    """
    Build one Shelter per catalogue location.

    Args:
        rng (numpy.random.Generator, optional): Random source of the generation
        locations (list of dict, optional): Catalogue, defaults to SHELTER_LOCATIONS

    Returns:
        list of Shelter
    """
    rng = make_rng(rng)
    locations = SHELTER_LOCATIONS if locations is None else locations

    shelters = []
    for loc in locations:
        capacity = int(loc['capacity'])
        shelters.append(Shelter(
            id=generate_id(rng),
            name=loc['name'],
            coordinates=(loc['lon'], loc['lat']),
            capacity=capacity,
            current_occupancy=int(rng.random() * capacity * INITIAL_OCCUPANCY_RATIO),
            shelter_type=loc['type'],
            facilities=get_facilities(capacity),
            district=loc['city'],
            province=SHELTER_PROVINCES.get(loc['city'], 'Punjab'),
            contact=generate_phone_number(rng),
            address=f"{loc['name']}, {loc['city']}",
        ))

    logger.info(f"Generated {len(shelters)} shelters, total capacity "
                f"{sum(s.capacity for s in shelters)}")
    return shelters


def simulate_occupancy(shelter, rng):
    """
    Next occupancy reading for a shelter: a drift of up to 5% of capacity,
    biased towards arrivals. Closed shelters are returned unchanged.
    """
    if shelter.closed:
        return shelter
    change = int(round((rng.random() - 0.4) * shelter.capacity * 0.05))
    occupancy = min(shelter.capacity, max(0, shelter.current_occupancy + change))
    return shelter.with_occupancy(occupancy)


def get_shelters_by_city(city, shelters):
    return [s for s in shelters if s.district == city]


def get_available_shelters(shelters):
    """Shelters that can still take people (status available or partial)."""
    return [s for s in shelters if s.is_available]


def find_nearest_shelter(lat, lon, shelters):
    """
    Nearest shelter that is neither full nor closed.

    Linear scan; on equal distances the first shelter in input order wins.

    Args:
        lat (float): Latitude of the origin
        lon (float): Longitude of the origin
        shelters (list of Shelter): Candidates

    Returns:
        Shelter or None: None when no shelter is eligible
    """
    nearest = None
    min_distance = math.inf
    for shelter in shelters:
        if not shelter.is_available:
            continue
        d = distance_km(lat, lon, shelter.latitude, shelter.longitude)
        if d < min_distance:
            min_distance = d
            nearest = shelter
    return nearest

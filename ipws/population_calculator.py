"""
IPWS Flood Early Warning - Population Impact Calculator

Estimates how many people live around each monitoring station, broken down
into four concentric rings (0-500 m, 500 m-1 km, 1-1.5 km, 1.5-2 km), and how
many of them are affected at the station's current risk tier.

The cumulative population at each radius comes from a density x area model;
rings are taken by difference so they always add up to the 2 km total, the
same way an annulus is the outer buffer minus the inner one.

Key Functions:
- get_population_density: city override, then province default
- calculate_population_in_buffer: floor(pi r^2 density)
- calculate_population_for_station: buffer totals, rings, demographics, economics
- calculate_all_population_data: one PopulationData per station
- calculate_population_statistics: totals and breakdowns by risk tier and province
"""

import logging
import math

import pandas as pd

from ipws.economic_calculator import calculate_economic_impact
from ipws.models import PopulationData, PopulationRing
from ipws.thresholds import RED, DARK_ORANGE, ORANGE, YELLOW, RISK_LEVELS

logger = logging.getLogger(__name__)

# People per km2 for named towns along the river
CITY_DENSITY = {
    # High density urban areas (Sindh)
    'Hyderabad': 6000,
    'Karachi Port': 8000,
    'Keamari': 7500,
    'Bin Qasim': 7000,
    'Latifabad': 6500,
    'Sukkur': 5500,
    'Rohri': 5000,

    # Medium-high density
    'Dera Ghazi Khan': 4000,
    'Dera Ismail Khan': 4000,
    'Rajanpur': 3500,
    'Ghotki': 3500,
    'Khairpur': 3500,
    'Thatta': 3000,
    'Attock City': 3500,

    # Semi-urban
    'Mianwali City': 2500,
    'Kashmore': 2800,
    'Kotri': 3000,
    'Jamshoro': 2500,
    'Taunsa': 2200,
    'Kalabagh': 2000,

    # Rural and mountain
    'Skardu': 1200,
    'Gilgit': 1500,
    'Chilas': 1000,
    'Besham': 1800,
    'Tarbela Dam': 2000,
    'Dasu': 800,
}

PROVINCE_DENSITY = {
    'Sindh': 2500,
    'Punjab': 2000,
    'Khyber Pakhtunkhwa': 1500,
    'Gilgit-Baltistan': 800,
}

DEFAULT_DENSITY = 1500

# (label, radius in km) of the cumulative buffers, innermost first
BUFFER_RADII = [
    ('500m', 0.5),
    ('1km', 1.0),
    ('1.5km', 1.5),
    ('2km', 2.0),
]

RING_LABELS = ['0-500m', '500m-1km', '1km-1.5km', '1.5km-2km']

# Buffer that counts as affected for each tier
AFFECTED_BUFFER = {
    RED: '2km',
    DARK_ORANGE: '1.5km',
    ORANGE: '1km',
    YELLOW: '500m',
}

# Demographic shares (Pakistan census based)
CHILDREN_SHARE = 0.36  # under 15
ELDERLY_SHARE = 0.04   # over 65
DISABLED_SHARE = 0.025
AVERAGE_HOUSEHOLD_SIZE = 6.5

PROVINCES = ('Gilgit-Baltistan', 'Khyber Pakhtunkhwa', 'Punjab', 'Sindh')


def get_population_density(province, city):
    """
    Population density (people/km2) used around a station.

    Args:
        province (str): Station province
        city (str): Station city, checked first

    Returns:
        int: Density in people per km2
    """
    if city in CITY_DENSITY:
        return CITY_DENSITY[city]
    return PROVINCE_DENSITY.get(province, DEFAULT_DENSITY)


def calculate_population_in_buffer(radius_km, density):
    """Population inside a circle: floor(pi * r^2 * density)."""
    if radius_km < 0 or density < 0:
        raise ValueError(f"Radius and density must be non-negative, got {radius_km} and {density}")
    return int(math.floor(math.pi * radius_km * radius_km * density))


def _vulnerable(population):
    return (
        int(population * CHILDREN_SHARE),
        int(population * ELDERLY_SHARE),
        int(population * DISABLED_SHARE),
    )


def calculate_demographics(total):
    """
    Splits an affected population into demographic groups.

    Adults are what remains after children and elderly; disabled people are
    counted across all age groups and are not subtracted.
    """
    children, elderly, disabled = _vulnerable(total)
    return {
        'totalPopulation': total,
        'children': children,
        'adults': total - children - elderly,
        'elderly': elderly,
        'disabled': disabled,
        'averageHouseholdSize': AVERAGE_HOUSEHOLD_SIZE,
    }


def calculate_households(population):
    return int(population / AVERAGE_HOUSEHOLD_SIZE)


def calculate_population_rings(buffer_zones):
    """
    Splits cumulative buffer populations into four annuli.

    Args:
        buffer_zones (dict): Cumulative population keyed by '500m', '1km', '1.5km', '2km'

    Returns:
        list of PopulationRing: Innermost first, summing to buffer_zones['2km']
    """
    rings = []
    previous = 0
    for (label, _), ring_label in zip(BUFFER_RADII, RING_LABELS):
        population = buffer_zones[label] - previous
        previous = buffer_zones[label]
        children, elderly, disabled = _vulnerable(population)
        rings.append(PopulationRing(
            distance=ring_label,
            population=population,
            households=calculate_households(population),
            children=children,
            elderly=elderly,
            disabled=disabled,
        ))
    return rings


def calculate_population_for_station(station):
    """
    Calculates the population impact around one station.

    Args:
        station (Station): Monitoring station; its current tier selects the
            affected buffer (red 2 km, darkOrange 1.5 km, orange 1 km, yellow 500 m)

    Returns:
        PopulationData: Buffer totals, rings, demographics and economic exposure
    """
    density = get_population_density(station.province, station.city)

    buffer_zones = {
        label: calculate_population_in_buffer(radius, density)
        for label, radius in BUFFER_RADII
    }
    rings = calculate_population_rings(buffer_zones)

    total_affected = buffer_zones[AFFECTED_BUFFER[station.risk_level]]
    total_households = calculate_households(total_affected)

    economic_data = calculate_economic_impact(
        total_affected, total_households, density, station.province, station.city)

    return PopulationData(
        station=station,
        density=density,
        buffer_zones=buffer_zones,
        population_rings=rings,
        total_affected_population=total_affected,
        total_households=total_households,
        demographics=calculate_demographics(total_affected),
        economic_data=economic_data,
    )


def calculate_all_population_data(stations):
    """Population data for every station, in station order."""
    population_data = [calculate_population_for_station(s) for s in stations]
    logger.info(f"Calculated population data for {len(population_data)} stations")
    return population_data


def population_frame(population_data):
    """One row per station with the fields the statistics aggregate over."""
    rows = [{
        'stationId': d.station_id,
        'riskLevel': d.risk_level,
        'province': d.province,
        'population': d.total_affected_population,
        'households': d.total_households,
        'children': d.demographics['children'],
        'elderly': d.demographics['elderly'],
        'disabled': d.demographics['disabled'],
        'economicLoss': d.economic_data['estimatedEconomicLoss'],
        'livestock': d.economic_data['livestockCount'],
        'agriculturalLand': d.economic_data['agriculturalLand'],
    } for d in population_data]
    columns = ['stationId', 'riskLevel', 'province', 'population', 'households', 'children',
               'elderly', 'disabled', 'economicLoss', 'livestock', 'agriculturalLand']
    return pd.DataFrame(rows, columns=columns)


def calculate_population_statistics(population_data):
    """
    Aggregates population data across all stations.

    Args:
        population_data (list of PopulationData): One entry per station

    Returns:
        dict: totalPopulation, totalHouseholds, totalChildren, totalElderly,
              totalDisabled, totalEconomicLoss, totalLivestock,
              totalAgriculturalLand, byRiskLevel (every tier present) and
              byProvince (the four basin provinces plus any other seen)
    """
    df = population_frame(population_data)

    by_risk = df.groupby('riskLevel')['population'].sum()
    by_province = df.groupby('province')['population'].sum()

    # Every tier is reported, highest first, even when no station is in it
    by_risk_level = {tier: int(by_risk.get(tier, 0)) for tier in reversed(RISK_LEVELS)}
    by_province_totals = {p: int(by_province.get(p, 0)) for p in PROVINCES}
    for province, total in by_province.items():
        if province not in by_province_totals:
            by_province_totals[province] = int(total)

    return {
        'totalPopulation': int(df['population'].sum()),
        'totalHouseholds': int(df['households'].sum()),
        'totalChildren': int(df['children'].sum()),
        'totalElderly': int(df['elderly'].sum()),
        'totalDisabled': int(df['disabled'].sum()),
        'totalEconomicLoss': int(df['economicLoss'].sum()),
        'totalLivestock': int(df['livestock'].sum()),
        'totalAgriculturalLand': round(float(df['agriculturalLand'].sum()), 2),
        'byRiskLevel': by_risk_level,
        'byProvince': by_province_totals,
    }

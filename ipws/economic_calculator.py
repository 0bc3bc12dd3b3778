"""
Economic exposure of the population around a station: estimated loss,
livestock and agricultural land at risk, and the main local occupation.
Values are banded by population density.
"""

import logging

logger = logging.getLogger(__name__)

# Estimated flood loss per affected person (PKR), by population density band.
# Denser settlements carry more built property per head.
LOSS_PER_CAPITA_BANDS = [
    (4000, 150000),  # density > 4000 people/km2
    (2000, 100000),  # density > 2000 people/km2
]
DEFAULT_LOSS_PER_CAPITA = 75000

# Livestock heads and agricultural land (ha) per household. Rural areas hold more of both.
# Bands are (upper density bound, value); the bound is exclusive.
LIVESTOCK_PER_HOUSEHOLD_BANDS = [(2000, 8), (4000, 3)]
DEFAULT_LIVESTOCK_PER_HOUSEHOLD = 1

AGRICULTURAL_LAND_PER_HOUSEHOLD_BANDS = [(2000, 2.5), (4000, 1.0)]
DEFAULT_AGRICULTURAL_LAND_PER_HOUSEHOLD = 0.2

# Provinces where farming dominates regardless of the city
AGRICULTURAL_PROVINCES = frozenset({'Sindh', 'Punjab'})


def get_loss_per_capita(density):
    """
    Returns the estimated economic loss per affected person for a density.

    Args:
        density (float): Population density (people/km2)

    Returns:
        int: Loss per capita in PKR
    """
    for lower_bound, loss in LOSS_PER_CAPITA_BANDS:
        if density > lower_bound:
            return loss
    return DEFAULT_LOSS_PER_CAPITA


def get_livestock_per_household(density):
    for upper_bound, heads in LIVESTOCK_PER_HOUSEHOLD_BANDS:
        if density < upper_bound:
            return heads
    return DEFAULT_LIVESTOCK_PER_HOUSEHOLD


def get_agricultural_land_per_household(density):
    for upper_bound, hectares in AGRICULTURAL_LAND_PER_HOUSEHOLD_BANDS:
        if density < upper_bound:
            return hectares
    return DEFAULT_AGRICULTURAL_LAND_PER_HOUSEHOLD


def get_primary_occupation(province, city):
    """
    Determines the dominant livelihood around a station.

    Sindh and Punjab are farming provinces; elsewhere only Karachi's port
    cities are treated as trade economies.
    """
    if province in AGRICULTURAL_PROVINCES:
        return 'Agriculture'
    if 'Karachi' in (city or ''):
        return 'Trade'
    return 'Agriculture'


def calculate_economic_impact(total_affected, total_households, density, province, city):
    """
    Calculates the economic exposure of the population around a station.

    Args:
        total_affected (int): Affected population
        total_households (int): Affected households
        density (float): Population density used for the estimate (people/km2)
        province (str): Station province
        city (str): Station city

    Returns:
        dict: primaryOccupation, estimatedEconomicLoss (PKR), livestockCount,
              agriculturalLand (ha, 2 decimals)
    """
    if total_affected < 0 or total_households < 0:
        raise ValueError(
            f"Affected population and households must be non-negative, got "
            f"{total_affected} and {total_households}")

    economic_loss = total_affected * get_loss_per_capita(density)
    livestock = int(total_households * get_livestock_per_household(density))
    land = round(total_households * get_agricultural_land_per_household(density), 2)

    logger.debug(f"{city}: loss {economic_loss} PKR, {livestock} livestock, {land} ha")

    return {
        'primaryOccupation': get_primary_occupation(province, city),
        'estimatedEconomicLoss': economic_loss,
        'livestockCount': livestock,
        'agriculturalLand': land,
    }


def format_pkr_billions(amount):
    """Formats a PKR amount as billions with two decimals, e.g. 'PKR 12.34 Billion'."""
    return f"PKR {amount / 1_000_000_000:.2f} Billion"

"""
IPWS Flood Early Warning - Dataset Generation and Reporting

Runs one complete generation pass (stations, villages, buffer zones,
population impact, shelters, evacuation routes, time series and alerts) and
bundles the output into an immutable Dataset snapshot. Every entity in a
snapshot comes from the same pass and the same random source, so a fixed seed
reproduces the snapshot exactly.

Key Functions:
- generate(): build a Dataset from a seed
- simulate_tick(): next Dataset after one simulated round of sensor readings
- format_summary(): human readable population impact report
"""

import logging
from datetime import datetime, timezone
from types import MappingProxyType

from ipws.alerts import generate_alerts
from ipws.buffer_zones import generate_buffers, calculate_buffer_population
from ipws.clustering import StationClusterer
from ipws.economic_calculator import format_pkr_billions
from ipws.evacuation import generate_evacuation_routes, get_critical_routes
from ipws.population_calculator import (
    calculate_all_population_data, calculate_population_statistics,
)
from ipws.shelters import generate_shelters, simulate_occupancy, get_available_shelters
from ipws.stations import generate_stations, simulate_reading, get_critical_stations
from ipws.thresholds import RISK_LEVELS, get_risk_label
from ipws.time_series import generate_multiple_time_series
from ipws.translation_utils import get_translation
from ipws.utils import make_rng
from ipws.villages import generate_villages, get_high_risk_villages

logger = logging.getLogger(__name__)

DATA_VERSION = '1.0'
EXPORT_DESCRIPTION = 'Population data near each IoT sensor station along Indus River'


class Dataset:
    """
    One generation of the warning system's data.

    Collections are tuples and lookups read-only mappings; a new generation
    is a new Dataset.
    """

    def __init__(self, stations, villages, buffers, population_data, shelters, routes,
                 time_series, alerts, generated_at, seed=None):
        self.stations = tuple(stations)
        self.villages = tuple(villages)
        self.buffers = tuple(buffers)
        self.population_data = tuple(population_data)
        self.shelters = tuple(shelters)
        self.routes = tuple(routes)
        self.time_series = MappingProxyType(dict(time_series))
        self.alerts = tuple(alerts)
        self.generated_at = generated_at
        self.seed = seed

        self._stations_by_id = MappingProxyType({s.id: s for s in self.stations})
        self._villages_by_id = MappingProxyType({v.id: v for v in self.villages})
        self._shelters_by_id = MappingProxyType({s.id: s for s in self.shelters})
        self._population_by_station = MappingProxyType(
            {d.station_id: d for d in self.population_data})

    def get_station(self, station_id):
        return self._stations_by_id.get(station_id)

    def get_village(self, village_id):
        return self._villages_by_id.get(village_id)

    def get_shelter(self, shelter_id):
        return self._shelters_by_id.get(shelter_id)

    def get_population_data(self, station_id):
        return self._population_by_station.get(station_id)

    def get_time_series(self, station_id):
        return self.time_series.get(station_id)

    def clusterer(self, selected_area=None, **options):
        """StationClusterer loaded with this generation's stations."""
        return StationClusterer(**options).load(self.stations, selected_area)

    def summary_statistics(self):
        """Population statistics plus counts across the whole generation."""
        stats = calculate_population_statistics(self.population_data)
        stats.update({
            'totalStations': len(self.stations),
            'criticalStations': len(get_critical_stations(self.stations)),
            'stationsByRiskLevel': {
                tier: sum(1 for s in self.stations if s.risk_level == tier)
                for tier in reversed(RISK_LEVELS)
            },
            'totalVillages': len(self.villages),
            'highRiskVillages': len(get_high_risk_villages(self.villages)),
            'bufferPopulation': calculate_buffer_population(self.buffers),
            'totalShelters': len(self.shelters),
            'availableShelters': len(get_available_shelters(self.shelters)),
            'shelterCapacity': sum(s.capacity for s in self.shelters),
            'totalRoutes': len(self.routes),
            'criticalRoutes': len(get_critical_routes(self.routes)),
            'fallbackRoutes': sum(1 for r in self.routes if r.fallback),
            'activeAlerts': len(self.alerts),
        })
        return stats

    def to_export(self):
        """The offline export document: metadata, statistics and population data."""
        return {
            'metadata': {
                'generatedAt': self.generated_at.isoformat(),
                'totalSensors': len(self.stations),
                'dataVersion': DATA_VERSION,
                'description': EXPORT_DESCRIPTION,
            },
            'statistics': calculate_population_statistics(self.population_data),
            'populationData': [d.to_dict() for d in self.population_data],
        }


def _derive(stations, villages, shelters, rng, hours, now, seed):
    buffers = generate_buffers(stations, villages, rng)
    population_data = calculate_all_population_data(stations)
    routes = generate_evacuation_routes(villages, shelters, rng)
    time_series = generate_multiple_time_series(stations, rng, hours, now)
    alerts = generate_alerts(stations, population_data)
    return Dataset(stations, villages, buffers, population_data, shelters, routes,
                   time_series, alerts, generated_at=now, seed=seed)


def generate(seed=None, now=None, hours=48):
    """
    Run one full generation pass.

    Args:
        seed (int, optional): Seed for the random source; None draws fresh entropy
        now (datetime, optional): Reference time of the generation
        hours (int): Length of the station time series

    Returns:
        Dataset
    """
    rng = make_rng(seed)
    now = now or datetime.now(timezone.utc)

    stations = generate_stations(rng, now)
    villages = generate_villages(rng, stations)
    shelters = generate_shelters(rng)
    dataset = _derive(stations, villages, shelters, rng, hours, now, seed)

    logger.info(f"Generated dataset: {len(dataset.stations)} stations, {len(dataset.villages)} villages, "
                f"{len(dataset.routes)} routes, {len(dataset.alerts)} alerts")
    return dataset


def simulate_tick(dataset, rng=None, now=None, hours=48):
    """
    Advance a dataset by one round of sensor readings.

    Station levels and shelter occupancies move; buffers, population data,
    routes, time series and alerts are rebuilt from them. Villages are kept.

    Args:
        dataset (Dataset): Current generation, left unchanged
        rng (numpy.random.Generator, optional): Random source for the tick
        now (datetime, optional): Timestamp of the new readings

    Returns:
        Dataset: The next generation
    """
    rng = make_rng(rng)
    now = now or datetime.now(timezone.utc)

    stations = [simulate_reading(s, rng, now) for s in dataset.stations]
    shelters = [simulate_occupancy(s, rng) for s in dataset.shelters]
    changed = sum(1 for old, new in zip(dataset.stations, stations) if old.risk_level != new.risk_level)
    logger.info(f"Simulated tick: {changed} stations changed risk level")
    return _derive(stations, dataset.villages, shelters, rng, hours, now, dataset.seed)


def format_summary(dataset, language=None):
    """
    Human readable population impact report for a dataset.

    Args:
        dataset (Dataset): Generation to summarise
        language (str, optional): Language of the headings

    Returns:
        str: Multi-line report
    """
    def t(key, fallback):
        return get_translation(f"report.{key}", fallback, language)

    stats = dataset.summary_statistics()
    lines = [
        t('title', 'IPWS Population Impact Report'),
        '',
        f"{t('stations', 'Monitoring stations')}: {stats['totalStations']} "
        f"({stats['criticalStations']} critical)",
        f"{t('villages', 'Villages')}: {stats['totalVillages']} ({stats['highRiskVillages']} high risk)",
        f"{t('shelters', 'Shelters')}: {stats['availableShelters']}/{stats['totalShelters']} available, "
        f"capacity {stats['shelterCapacity']:,}",
        f"{t('routes', 'Evacuation routes')}: {stats['totalRoutes']} ({stats['criticalRoutes']} blocked or unsafe)",
        '',
        f"{t('totalAffected', 'Total Affected Population')}: {stats['totalPopulation']:,}",
        f"{t('households', 'Total Households')}: {stats['totalHouseholds']:,}",
        f"{t('vulnerable', 'Vulnerable Groups')}:",
        f"  - {t('children', 'Children (under 15)')}: {stats['totalChildren']:,}",
        f"  - {t('elderly', 'Elderly (over 65)')}: {stats['totalElderly']:,}",
        f"  - {t('disabled', 'Disabled')}: {stats['totalDisabled']:,}",
        f"{t('economic', 'Economic Impact')}: {format_pkr_billions(stats['totalEconomicLoss'])}",
        f"{t('livestock', 'Livestock at Risk')}: {stats['totalLivestock']:,}",
        f"{t('agriculturalLand', 'Agricultural Land')}: {stats['totalAgriculturalLand']:,} ha",
        '',
        f"{t('byRiskLevel', 'By Risk Level')}:",
    ]
    for tier, population in stats['byRiskLevel'].items():
        lines.append(f"  {get_risk_label(tier, language)} ({tier}): {population:,}")
    lines.append('')
    lines.append(f"{t('byProvince', 'By Province')}:")
    for province, population in stats['byProvince'].items():
        lines.append(f"  {province}: {population:,}")
    return "\n".join(lines)

"""
IPWS Flood Early Warning - Core Entity Models

This module defines the records the engine works on: monitoring stations,
villages, shelters, buffer zones, population impact data and evacuation
routes. Records are validated when constructed and are not mutated after a
dataset generation has been built; "updates" produce new records.

Risk tiers are never stored. A station's tier is recomputed from its reading
each time it is read, a village's from its distance to the river, and a
buffer zone reads its tier, radius and type through its owning station.
"""

import math
import numbers
from datetime import datetime, timezone

from ipws.thresholds import (
    WARNING_LEVEL_RATIO, classify_risk, classify_by_distance, calculate_risk_percentage,
    get_buffer_radius, get_buffer_type, get_shelter_status, is_critical,
    UNAVAILABLE_SHELTER_STATUSES,
)

STATION_STATUSES = ('active', 'inactive', 'maintenance')
STATION_TRENDS = ('rising', 'falling', 'stable')
SHELTER_TYPES = ('school', 'community-center', 'government-building', 'camp', 'other')
SHELTER_FACILITIES = ('food', 'water', 'medical', 'electricity', 'sanitation', 'communication')
ROAD_TYPES = ('paved', 'highway', 'unpaved')
ROUTE_STATUSES = ('open', 'congested', 'blocked', 'unsafe')


class ValidationError(ValueError):
    """Raised when a record is malformed at construction time."""


def _validate_coordinates(coordinates, label):
    try:
        lon, lat = float(coordinates[0]), float(coordinates[1])
    except (TypeError, IndexError, ValueError):
        raise ValidationError(f"{label}: coordinates must be a (lon, lat) pair, got {coordinates!r}")
    if not (-180.0 <= lon <= 180.0) or not (-90.0 <= lat <= 90.0):
        raise ValidationError(f"{label}: coordinates out of range: ({lon}, {lat})")
    return (lon, lat)


def _is_finite_number(value):
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def _isoformat(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class Station:
    """
    A river monitoring station (one IoT device) and its latest reading.
    """

    def __init__(self, id, name, device_id, coordinates, city, district, province,
                 current_level, danger_level, normal_level, status='active',
                 last_updated=None, trend='stable', flow_rate=None, temperature=None,
                 rainfall=None, battery_level=None):
        label = f"Station {name!r}"
        for field, value in (('current', current_level), ('danger', danger_level),
                             ('normal', normal_level)):
            if not _is_finite_number(value):
                raise ValidationError(f"{label}: {field} level must be a finite number, got {value!r}")
        if danger_level <= 0:
            raise ValidationError(f"{label}: danger level must be positive, got {danger_level}")
        if current_level < 0:
            raise ValidationError(f"{label}: current level cannot be negative, got {current_level}")
        if normal_level < 0 or normal_level >= danger_level:
            raise ValidationError(
                f"{label}: normal level must lie in [0, danger level), got {normal_level}")
        if status not in STATION_STATUSES:
            raise ValidationError(f"{label}: unknown status {status!r}")
        if trend not in STATION_TRENDS:
            raise ValidationError(f"{label}: unknown trend {trend!r}")
        if battery_level is not None and not (0 <= battery_level <= 100):
            raise ValidationError(f"{label}: battery level must be 0-100, got {battery_level}")

        self.id = id
        self.name = name
        self.device_id = device_id
        self.coordinates = _validate_coordinates(coordinates, label)
        self.city = city
        self.district = district
        self.province = province
        self.current_level = float(current_level)
        self.danger_level = float(danger_level)
        self.normal_level = float(normal_level)
        self.status = status
        self.last_updated = last_updated or datetime.now(timezone.utc)
        self.trend = trend
        self.flow_rate = flow_rate
        self.temperature = temperature
        self.rainfall = rainfall
        self.battery_level = battery_level

    @property
    def longitude(self):
        return self.coordinates[0]

    @property
    def latitude(self):
        return self.coordinates[1]

    @property
    def warning_level(self):
        return self.danger_level * WARNING_LEVEL_RATIO

    @property
    def risk_level(self):
        return classify_risk(self.current_level, self.danger_level)

    @property
    def risk_percentage(self):
        return calculate_risk_percentage(self.current_level, self.danger_level)

    @property
    def is_critical(self):
        return is_critical(self.risk_level)

    def with_reading(self, current_level, last_updated=None, trend=None, **fields):
        """Return a copy of this station carrying a new reading."""
        values = self._constructor_kwargs()
        values.update(fields)
        values['current_level'] = current_level
        values['last_updated'] = last_updated or datetime.now(timezone.utc)
        if trend is not None:
            values['trend'] = trend
        return Station(**values)

    def _constructor_kwargs(self):
        return {
            'id': self.id, 'name': self.name, 'device_id': self.device_id,
            'coordinates': self.coordinates, 'city': self.city, 'district': self.district,
            'province': self.province, 'current_level': self.current_level,
            'danger_level': self.danger_level, 'normal_level': self.normal_level,
            'status': self.status, 'last_updated': self.last_updated, 'trend': self.trend,
            'flow_rate': self.flow_rate, 'temperature': self.temperature,
            'rainfall': self.rainfall, 'battery_level': self.battery_level,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'deviceId': self.device_id,
            'coordinates': list(self.coordinates),
            'city': self.city,
            'district': self.district,
            'province': self.province,
            'currentLevel': round(self.current_level, 2),
            'dangerLevel': round(self.danger_level, 2),
            'warningLevel': round(self.warning_level, 2),
            'normalLevel': round(self.normal_level, 2),
            'status': self.status,
            'riskLevel': self.risk_level,
            'lastUpdated': _isoformat(self.last_updated),
            'trend': self.trend,
            'flowRate': self.flow_rate,
            'temperature': self.temperature,
            'rainfall': self.rainfall,
            'batteryLevel': self.battery_level,
        }

    def __repr__(self):
        return f"Station(id={self.id!r}, name={self.name!r}, risk_level={self.risk_level!r})"


class Village:
    """A populated place near the river."""

    def __init__(self, id, name, coordinates, population, district, province,
                 distance_to_river, nearest_station_id=None, elevation=None,
                 evacuation_plan=False, shelter_capacity=None):
        label = f"Village {name!r}"
        if not isinstance(population, numbers.Integral) or isinstance(population, bool) or population <= 0:
            raise ValidationError(f"{label}: population must be a positive integer, got {population!r}")
        if not _is_finite_number(distance_to_river) or distance_to_river < 0:
            raise ValidationError(
                f"{label}: distance to river must be a finite non-negative number, got {distance_to_river!r}")
        if shelter_capacity is not None and shelter_capacity < 0:
            raise ValidationError(f"{label}: shelter capacity cannot be negative, got {shelter_capacity}")

        self.id = id
        self.name = name
        self.coordinates = _validate_coordinates(coordinates, label)
        self.population = int(population)
        self.district = district
        self.province = province
        self.distance_to_river = float(distance_to_river)
        self.nearest_station_id = nearest_station_id
        self.elevation = elevation
        self.evacuation_plan = bool(evacuation_plan)
        self.shelter_capacity = shelter_capacity

    @property
    def longitude(self):
        return self.coordinates[0]

    @property
    def latitude(self):
        return self.coordinates[1]

    @property
    def risk_level(self):
        return classify_by_distance(self.distance_to_river)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'coordinates': list(self.coordinates),
            'population': self.population,
            'district': self.district,
            'province': self.province,
            'riskLevel': self.risk_level,
            'nearestStationId': self.nearest_station_id,
            'distanceToRiver': self.distance_to_river,
            'elevation': self.elevation,
            'evacuationPlan': self.evacuation_plan,
            'shelterCapacity': self.shelter_capacity,
        }

    def __repr__(self):
        return f"Village(id={self.id!r}, name={self.name!r}, risk_level={self.risk_level!r})"


class Shelter:
    """
    A shelter or relief camp.

    Status follows occupancy (>=95% full, >=70% partial, otherwise available)
    unless the shelter has been closed by an operator.
    """

    def __init__(self, id, name, coordinates, capacity, current_occupancy, shelter_type,
                 facilities, district, province, contact=None, address=None, closed=False):
        label = f"Shelter {name!r}"
        if not isinstance(capacity, numbers.Integral) or isinstance(capacity, bool) or capacity <= 0:
            raise ValidationError(f"{label}: capacity must be a positive integer, got {capacity!r}")
        if current_occupancy < 0 or current_occupancy > capacity:
            raise ValidationError(
                f"{label}: occupancy {current_occupancy} outside [0, {capacity}]")
        if shelter_type not in SHELTER_TYPES:
            raise ValidationError(f"{label}: unknown shelter type {shelter_type!r}")
        facilities = frozenset(facilities)
        unknown = facilities.difference(SHELTER_FACILITIES)
        if unknown:
            raise ValidationError(f"{label}: unknown facilities {sorted(unknown)}")

        self.id = id
        self.name = name
        self.coordinates = _validate_coordinates(coordinates, label)
        self.capacity = int(capacity)
        self.current_occupancy = int(current_occupancy)
        self.shelter_type = shelter_type
        self.facilities = facilities
        self.district = district
        self.province = province
        self.contact = contact
        self.address = address
        self.closed = bool(closed)

    @property
    def longitude(self):
        return self.coordinates[0]

    @property
    def latitude(self):
        return self.coordinates[1]

    @property
    def status(self):
        return get_shelter_status(self.current_occupancy, self.capacity, self.closed)

    @property
    def occupancy_rate(self):
        return self.current_occupancy / self.capacity

    @property
    def available_capacity(self):
        return self.capacity - self.current_occupancy

    @property
    def is_available(self):
        return self.status not in UNAVAILABLE_SHELTER_STATUSES

    def with_occupancy(self, current_occupancy, closed=None):
        """Return a copy of this shelter with a new occupancy count."""
        return Shelter(
            id=self.id, name=self.name, coordinates=self.coordinates, capacity=self.capacity,
            current_occupancy=current_occupancy, shelter_type=self.shelter_type,
            facilities=self.facilities, district=self.district, province=self.province,
            contact=self.contact, address=self.address,
            closed=self.closed if closed is None else closed,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'coordinates': list(self.coordinates),
            'capacity': self.capacity,
            'currentOccupancy': self.current_occupancy,
            'type': self.shelter_type,
            'facilities': [f for f in SHELTER_FACILITIES if f in self.facilities],
            'district': self.district,
            'province': self.province,
            'status': self.status,
            'contact': self.contact,
            'address': self.address,
        }

    def __repr__(self):
        return f"Shelter(id={self.id!r}, name={self.name!r}, status={self.status!r})"


class BufferZone:
    """
    Circular alert zone around a station.

    Radius, type and risk tier are read through the owning station. The
    population estimate is taken once at creation; ``is_stale`` tells the
    caller when the station's tier has moved on since then.
    """

    def __init__(self, id, station, population, affected_villages=(), risk_level_at_creation=None):
        if population < 0:
            raise ValidationError(f"Buffer {id!r}: population cannot be negative, got {population}")
        self.id = id
        self.station = station
        self.population = int(population)
        self.affected_villages = tuple(affected_villages)
        self.risk_level_at_creation = risk_level_at_creation or station.risk_level

    @property
    def station_id(self):
        return self.station.id

    @property
    def coordinates(self):
        return self.station.coordinates

    @property
    def risk_level(self):
        return self.station.risk_level

    @property
    def radius(self):
        return get_buffer_radius(self.risk_level)

    @property
    def type(self):
        return get_buffer_type(self.risk_level)

    @property
    def is_stale(self):
        return self.risk_level != self.risk_level_at_creation

    def to_dict(self):
        return {
            'id': self.id,
            'stationId': self.station_id,
            'radius': self.radius,
            'type': self.type,
            'coordinates': list(self.coordinates),
            'affectedVillages': list(self.affected_villages),
            'population': self.population,
            'riskLevel': self.risk_level,
            'stale': self.is_stale,
        }


class PopulationRing:
    """Population in one annulus around a station."""

    def __init__(self, distance, population, households, children, elderly, disabled):
        self.distance = distance
        self.population = population
        self.households = households
        self.children = children
        self.elderly = elderly
        self.disabled = disabled

    def to_dict(self):
        return {
            'distance': self.distance,
            'population': self.population,
            'households': self.households,
            'vulnerablePopulation': {
                'children': self.children,
                'elderly': self.elderly,
                'disabled': self.disabled,
            },
        }


class PopulationData:
    """Population and economic exposure around one station."""

    def __init__(self, station, density, buffer_zones, population_rings,
                 total_affected_population, total_households, demographics, economic_data):
        ring_total = sum(ring.population for ring in population_rings)
        if ring_total != buffer_zones['2km']:
            raise ValidationError(
                f"Population rings for {station.id!r} sum to {ring_total}, "
                f"expected {buffer_zones['2km']}")
        self.station = station
        self.density = density
        self.buffer_zones = dict(buffer_zones)
        self.population_rings = tuple(population_rings)
        self.total_affected_population = total_affected_population
        self.total_households = total_households
        self.demographics = dict(demographics)
        self.economic_data = dict(economic_data)

    @property
    def station_id(self):
        return self.station.id

    @property
    def province(self):
        return self.station.province

    @property
    def risk_level(self):
        return self.station.risk_level

    def to_dict(self):
        return {
            'stationId': self.station.id,
            'stationName': self.station.name,
            'deviceId': self.station.device_id,
            'city': self.station.city,
            'district': self.station.district,
            'province': self.station.province,
            'coordinates': list(self.station.coordinates),
            'riskLevel': self.risk_level,
            'bufferZones': dict(self.buffer_zones),
            'populationRings': [ring.to_dict() for ring in self.population_rings],
            'totalAffectedPopulation': self.total_affected_population,
            'totalHouseholds': self.total_households,
            'demographics': dict(self.demographics),
            'economicData': dict(self.economic_data),
        }


class EvacuationRoute:
    """Straight-line evacuation route from a village to a shelter."""

    def __init__(self, id, name, start_point, end_point, waypoints, distance, estimated_time,
                 capacity, road_type, status, affected_villages, destination_shelter,
                 fallback=False):
        if road_type not in ROAD_TYPES:
            raise ValidationError(f"Route {name!r}: unknown road type {road_type!r}")
        if status not in ROUTE_STATUSES:
            raise ValidationError(f"Route {name!r}: unknown status {status!r}")
        if distance < 0 or not math.isfinite(distance):
            raise ValidationError(f"Route {name!r}: invalid distance {distance}")
        self.id = id
        self.name = name
        self.start_point = tuple(start_point)
        self.end_point = tuple(end_point)
        self.waypoints = tuple(tuple(p) for p in waypoints)
        self.distance = distance
        self.estimated_time = estimated_time
        self.capacity = int(capacity)
        self.road_type = road_type
        self.status = status
        self.affected_villages = tuple(affected_villages)
        self.destination_shelter = destination_shelter
        self.fallback = bool(fallback)

    @property
    def path(self):
        """Start, interior waypoints and end as one ordered sequence."""
        return (self.start_point,) + self.waypoints + (self.end_point,)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'startPoint': list(self.start_point),
            'endPoint': list(self.end_point),
            'waypoints': [list(p) for p in self.waypoints],
            'distance': self.distance,
            'estimatedTime': self.estimated_time,
            'capacity': self.capacity,
            'roadType': self.road_type,
            'status': self.status,
            'affectedVillages': list(self.affected_villages),
            'destinationShelter': self.destination_shelter,
            'fallback': self.fallback,
        }

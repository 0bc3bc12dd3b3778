"""
IPWS Flood Early Warning - Station Alerts

One alert per station at orange or above. Red and darkOrange stations raise
critical alerts, orange stations a warning. Titles and messages are
localised through ipws.translation_utils.
"""

import logging

from ipws.thresholds import RED, DARK_ORANGE, ORANGE, is_high_risk, is_critical
from ipws.translation_utils import get_translation

logger = logging.getLogger(__name__)

ALERT_CRITICAL = 'critical'
ALERT_WARNING = 'warning'
ALERT_INFO = 'info'
ALERT_TYPES = (ALERT_CRITICAL, ALERT_WARNING, ALERT_INFO)

DEFAULT_TITLES = {
    RED: 'CRITICAL FLOOD ALERT',
    DARK_ORANGE: 'SEVERE FLOOD WARNING',
    ORANGE: 'FLOOD WATCH',
}

DEFAULT_ACTIONS = {
    RED: 'IMMEDIATE EVACUATION REQUIRED.',
    DARK_ORANGE: 'Prepare for evacuation.',
    ORANGE: 'Monitor closely.',
}

DEFAULT_MESSAGE = "Water level at {level:.2f}m ({percentage:.1f}% of danger level). {action}"


class Alert:
    """A flood alert raised for one station."""

    def __init__(self, id, alert_type, title, message, station, timestamp,
                 population_affected=0, economic_impact=0, acknowledged=False):
        if alert_type not in ALERT_TYPES:
            raise ValueError(f"Unknown alert type {alert_type!r}")
        self.id = id
        self.type = alert_type
        self.title = title
        self.message = message
        self.station = station
        self.timestamp = timestamp
        self.population_affected = population_affected
        self.economic_impact = economic_impact
        self.acknowledged = acknowledged

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'stationId': self.station.id,
            'stationName': self.station.name,
            'city': self.station.city,
            'riskLevel': self.station.risk_level,
            'timestamp': self.timestamp.isoformat(),
            'populationAffected': self.population_affected,
            'economicImpact': self.economic_impact,
            'acknowledged': self.acknowledged,
        }

    def __repr__(self):
        return f"Alert(id={self.id!r}, type={self.type!r}, title={self.title!r})"


def build_alert_message(station, language=None):
    risk_level = station.risk_level
    action = get_translation(f"alerts.actions.{risk_level}", DEFAULT_ACTIONS[risk_level], language)
    template = get_translation("alerts.message", DEFAULT_MESSAGE, language)
    return template.format(level=station.current_level, percentage=station.risk_percentage,
                           action=action)


def create_alert(station, population_data=None, language=None):
    """
    Alert for a single station, or None below orange.

    Args:
        station (Station): Station to evaluate
        population_data (PopulationData, optional): Impact data of the same station
        language (str, optional): Language for the title and message

    Returns:
        Alert or None
    """
    risk_level = station.risk_level
    if not is_high_risk(risk_level):
        return None

    return Alert(
        id=f"alert-{station.id}",
        alert_type=ALERT_CRITICAL if is_critical(risk_level) else ALERT_WARNING,
        title=get_translation(f"alerts.titles.{risk_level}", DEFAULT_TITLES[risk_level], language),
        message=build_alert_message(station, language),
        station=station,
        timestamp=station.last_updated,
        population_affected=population_data.total_affected_population if population_data else 0,
        economic_impact=population_data.economic_data['estimatedEconomicLoss'] if population_data else 0,
    )


def sort_alerts(alerts):
    """Critical alerts first, newest first within each type."""
    newest_first = sorted(alerts, key=lambda a: a.timestamp, reverse=True)
    return sorted(newest_first, key=lambda a: a.type != ALERT_CRITICAL)


def generate_alerts(stations, population_data=(), language=None):
    """
    Alerts for every station at orange or above.

    Args:
        stations (list of Station): Stations to evaluate
        population_data (iterable of PopulationData): Impact data, matched by station id
        language (str, optional): Language for titles and messages

    Returns:
        list of Alert: Sorted critical first, then newest first
    """
    by_station = {d.station_id: d for d in population_data}
    alerts = []
    for station in stations:
        alert = create_alert(station, by_station.get(station.id), language)
        if alert is not None:
            alerts.append(alert)

    critical = sum(1 for a in alerts if a.type == ALERT_CRITICAL)
    if critical:
        logger.warning(f"{critical} critical flood alerts active")
    return sort_alerts(alerts)


def filter_alerts(alerts, alert_type=None):
    """Alerts of one type; all of them when alert_type is None or 'all'."""
    if alert_type in (None, 'all'):
        return list(alerts)
    if alert_type not in ALERT_TYPES:
        raise ValueError(f"Unknown alert type {alert_type!r}")
    return [a for a in alerts if a.type == alert_type]

"""
IPWS Flood Early Warning Web Application

This Flask application serves the Indus Pulse Warning System data to the
dashboard: monitoring stations and their risk tiers, villages, buffer zones,
population impact, shelters, evacuation routes, alerts, map clusters and
station time series.

The current generation is held as one immutable Dataset. POST /regenerate
builds a new one and swaps the reference; requests in flight keep reading
the snapshot they started with.
"""

import logging
import os

from flask import Flask, request, jsonify

from ipws.buffer_zones import buffer_to_feature
from ipws.results import generate, format_summary
from ipws.stations import get_stations_by_city, get_stations_by_risk
from ipws.thresholds import RISK_LEVELS
from ipws.time_series import generate_forecast, detect_acceleration, calculate_average_level
from ipws.alerts import filter_alerts, ALERT_TYPES
from ipws.villages import get_villages_by_risk

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(message)s')
logger = logging.getLogger(__name__)

# Seed for the generation served at startup; unset means a fresh random dataset
DEFAULT_SEED = int(os.environ['IPWS_SEED']) if os.environ.get('IPWS_SEED') else None

app = Flask(__name__)
app.config['DATASET'] = generate(DEFAULT_SEED)


def current_dataset():
    return app.config['DATASET']


def _parse_bbox(value):
    if value is None:
        return (-180.0, -85.0, 180.0, 85.0)
    parts = [float(p) for p in value.split(',')]
    if len(parts) != 4:
        raise ValueError("bbox must be west,south,east,north")
    west, south, east, north = parts
    if not (-90 <= south <= north <= 90):
        raise ValueError("bbox latitudes must satisfy -90 <= south <= north <= 90")
    return (west, south, east, north)


def _unknown_risk_level(risk):
    return jsonify({"error": f"Unknown risk level '{risk}'. Use one of {', '.join(RISK_LEVELS)}."}), 400


@app.route('/stations')
def stations():
    """
    Lists monitoring stations, optionally filtered.

    Query Parameters:
        city (str, optional): Only stations in this city
        risk (str, optional): Only stations at this tier (yellow, orange, darkOrange, red)

    Returns:
        JSON list of stations. HTTP 400 for an unknown risk tier.
    """
    result = list(current_dataset().stations)
    city = request.args.get('city')
    risk = request.args.get('risk')
    if risk is not None and risk not in RISK_LEVELS:
        return _unknown_risk_level(risk)
    if city:
        result = get_stations_by_city(city, result)
    if risk:
        result = get_stations_by_risk(risk, result)
    return jsonify([s.to_dict() for s in result])


@app.route('/stations/<station_id>')
def station_detail(station_id):
    dataset = current_dataset()
    station = dataset.get_station(station_id)
    if station is None:
        return jsonify({"error": f"Station '{station_id}' not found."}), 404
    population = dataset.get_population_data(station_id)
    return jsonify({
        'station': station.to_dict(),
        'populationData': population.to_dict() if population else None,
    })


@app.route('/stations/<station_id>/timeseries')
def station_timeseries(station_id):
    """
    Hourly history of a station, with an optional forecast.

    Query Parameters:
        forecast (int, optional): Forecast hours (0-72, default 0)
    """
    dataset = current_dataset()
    station = dataset.get_station(station_id)
    if station is None:
        return jsonify({"error": f"Station '{station_id}' not found."}), 404
    try:
        forecast_hours = int(request.args.get('forecast', 0))
        if not (0 <= forecast_hours <= 72):
            raise ValueError
    except ValueError:
        return jsonify({"error": "forecast must be an integer between 0 and 72."}), 400

    series = dataset.get_time_series(station_id)
    payload = series.to_dict()
    payload['averageLevel'] = calculate_average_level(series)
    payload['accelerating'] = detect_acceleration(series)
    if forecast_hours:
        forecast = generate_forecast(station, forecast_hours=forecast_hours, now=dataset.generated_at)
        forecast['timestamp'] = forecast['timestamp'].map(lambda t: t.isoformat())
        payload['forecast'] = forecast.to_dict(orient='records')
    return jsonify(payload)


@app.route('/villages')
def villages():
    """Villages, ?risk=<tier> to keep one tier."""
    result = list(current_dataset().villages)
    risk = request.args.get('risk')
    if risk is not None:
        if risk not in RISK_LEVELS:
            return _unknown_risk_level(risk)
        result = get_villages_by_risk(risk, result)
    return jsonify([v.to_dict() for v in result])


@app.route('/buffers')
def buffers():
    """Buffer zones; ?format=geojson returns a FeatureCollection of circles."""
    dataset = current_dataset()
    if request.args.get('format') == 'geojson':
        return jsonify({
            'type': 'FeatureCollection',
            'features': [buffer_to_feature(b) for b in dataset.buffers],
        })
    return jsonify([b.to_dict() for b in dataset.buffers])


@app.route('/population')
def population():
    return jsonify(current_dataset().to_export())


@app.route('/shelters')
def shelters():
    return jsonify([s.to_dict() for s in current_dataset().shelters])


@app.route('/routes')
def routes():
    return jsonify([r.to_dict() for r in current_dataset().routes])


@app.route('/alerts')
def alerts():
    """Active alerts, ?type=critical|warning|info to filter."""
    alert_type = request.args.get('type')
    if alert_type not in (None, 'all') and alert_type not in ALERT_TYPES:
        return jsonify({"error": f"Unknown alert type '{alert_type}'."}), 400
    return jsonify([a.to_dict() for a in filter_alerts(current_dataset().alerts, alert_type)])


@app.route('/summary')
def summary():
    dataset = current_dataset()
    return jsonify({
        'statistics': dataset.summary_statistics(),
        'text': format_summary(dataset, request.args.get('lang')),
    })


@app.route('/clusters')
def clusters():
    """
    Station clusters for a map view.

    Query Parameters:
        zoom (float): Map zoom level (0-20)
        bbox (str, optional): west,south,east,north in degrees
        area (str, optional): City or district to restrict the stations to

    Returns:
        JSON FeatureCollection. HTTP 400 for a missing or invalid zoom or bbox.
    """
    try:
        zoom = float(request.args['zoom'])
        if not (0 <= zoom <= 20):
            return jsonify({"error": "Zoom must be between 0 and 20."}), 400
        bbox = _parse_bbox(request.args.get('bbox'))
    except (KeyError, ValueError):
        return jsonify({"error": "Invalid input. Provide a numeric zoom and bbox as west,south,east,north."}), 400

    clusterer = current_dataset().clusterer(request.args.get('area') or None)
    return jsonify({'type': 'FeatureCollection', 'features': clusterer.get_clusters(bbox, zoom)})


@app.route('/regenerate', methods=['POST'])
def regenerate():
    """
    Builds a new dataset generation and makes it current.

    Expected JSON Input (optional):
        seed (int): Seed for a reproducible generation
    """
    data = request.get_json(silent=True) or {}
    try:
        seed = data.get('seed')
        if seed is not None:
            seed = int(seed)
            if seed < 0:
                raise ValueError
    except (TypeError, ValueError):
        return jsonify({"error": "seed must be a non-negative integer."}), 400

    dataset = generate(seed)
    app.config['DATASET'] = dataset
    logger.info(f"Regenerated dataset (seed={seed})")
    return jsonify({
        'generatedAt': dataset.generated_at.isoformat(),
        'seed': seed,
        'statistics': dataset.summary_statistics(),
    })


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000, debug=False)

"""
Instrument API endpoints.

Provides endpoints for:
- GET    /api/altimeter              - Current reading, references and notices
- PUT    /api/altimeter/qnh          - Set QNH
- POST   /api/altimeter/zero         - Use current altitude as start point
- DELETE /api/altimeter/zero         - Clear the start point
- PUT    /api/altimeter/ceiling      - Set or clear the maximum altitude
- POST   /api/altimeter/pressure     - Host pushes a barometer sample
- POST   /api/altimeter/errors       - Host reports a transient sensor error
- POST   /api/altimeter/errors/dismiss - Dismiss a transient sensor error
- POST   /api/location/fix           - Host pushes a location fix
- PUT    /api/location/authorization - Host reports permission changes
"""

import logging
import time
from dataclasses import asdict

from flask import Blueprint, current_app, jsonify, request

from altimeter.altimetry import ReferenceValueError, parse_decimal_entry
from altimeter.sources import AuthorizationStatus, LocationFix, PressureSample

logger = logging.getLogger(__name__)

altimeter_bp = Blueprint('altimeter', __name__, url_prefix='/api/altimeter')
location_bp = Blueprint('location', __name__, url_prefix='/api/location')

LOCATION_FIELDS = (
    'latitude',
    'longitude',
    'altitude',
    'speed',
    'horizontal_accuracy',
    'vertical_accuracy',
    'timestamp',
)


def _instrument_state() -> dict:
    altimeter = current_app.config['ALTIMETER']
    location = current_app.config['LOCATION_TRACKER']
    reference = altimeter.reference

    notices = []
    if altimeter.error_message:
        notices.append({'source': 'barometer', 'message': altimeter.error_message})
    if location.error_message:
        notices.append({'source': 'location', 'message': location.error_message})

    return {
        'reading': altimeter.reading().to_dict(),
        'reference': {
            **reference.to_dict(),
            'has_start_point': reference.has_start_point,
            'max_altitude_from_start_m': reference.current_max_from_start_m(),
        },
        'sensor_available': altimeter.is_available,
        'location': {
            'authorization': location.source.authorization.value,
            'active': location.is_active,
            **asdict(location.snapshot()),
        },
        'notices': notices,
    }


@altimeter_bp.route('', methods=['GET'])
def get_instrument():
    return jsonify(_instrument_state())


@altimeter_bp.route('/qnh', methods=['PUT'])
def set_qnh():
    """
    Set the sea-level reference.

    Body: {"qnh_hpa": 1013.2} (string values with ',' decimals accepted)
    """
    data = request.get_json(silent=True) or {}
    value = parse_decimal_entry(data.get('qnh_hpa'))
    if value is None:
        return jsonify({'error': 'qnh_hpa must be a number'}), 400

    try:
        current_app.config['ALTIMETER'].set_qnh(value)
    except ReferenceValueError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify(_instrument_state())


@altimeter_bp.route('/zero', methods=['POST', 'DELETE'])
def zero_altitude():
    """Set (POST) or clear (DELETE) the start point."""
    altimeter = current_app.config['ALTIMETER']
    if request.method == 'DELETE':
        altimeter.clear_zero_altitude()
    else:
        altimeter.set_zero_altitude()
    return jsonify(_instrument_state())


@altimeter_bp.route('/ceiling', methods=['PUT'])
def set_ceiling():
    """
    Set the maximum altitude.

    Body: {"qne_m": 2500} or {"from_start_m": 800}; 0 or empty clears.
    When both are given, from_start_m wins if a start point exists.
    """
    data = request.get_json(silent=True) or {}
    reference = current_app.config['ALTIMETER'].reference

    qne_raw = data.get('qne_m')
    start_raw = data.get('from_start_m')
    qne_value = parse_decimal_entry(qne_raw)
    start_value = parse_decimal_entry(start_raw)

    if qne_raw not in (None, '') and qne_value is None:
        return jsonify({'error': 'qne_m must be a number'}), 400
    if start_raw not in (None, '') and start_value is None:
        return jsonify({'error': 'from_start_m must be a number'}), 400
    if (qne_value is not None and qne_value < 0) or (start_value is not None and start_value < 0):
        return jsonify({'error': 'Ceiling must not be negative'}), 400

    try:
        if not qne_value and not start_value:
            reference.clear_max_altitude()
        elif start_value and reference.has_start_point:
            reference.set_max_altitude_from_start(start_value)
        elif qne_value:
            reference.set_max_altitude_from_qne(qne_value)
        else:
            return jsonify({'error': 'No start point set'}), 400
    except ReferenceValueError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify(_instrument_state())


@altimeter_bp.route('/pressure', methods=['POST'])
def push_pressure():
    """
    Deliver a barometer sample from the host.

    Body: {"pressure_kpa": 100.1, "timestamp": 1714555800.0}
    """
    data = request.get_json(silent=True) or {}
    try:
        pressure = float(data['pressure_kpa'])
        timestamp = float(data.get('timestamp') or time.time())
    except (KeyError, TypeError, ValueError):
        return jsonify({'error': 'pressure_kpa must be a number'}), 400

    source = current_app.config['SENSOR_SOURCE']
    delivered = source.push(PressureSample(pressure_kpa=pressure, timestamp=timestamp))

    return jsonify({
        'delivered': delivered,
        'reading': current_app.config['ALTIMETER'].reading().to_dict(),
    })


@altimeter_bp.route('/errors', methods=['POST'])
def report_sensor_error():
    """Host reports a transient barometer error. Body: {"message": "..."}"""
    data = request.get_json(silent=True) or {}
    message = str(data.get('message') or 'Sensor error')
    current_app.config['SENSOR_SOURCE'].report_error(message)
    return jsonify(_instrument_state())


@altimeter_bp.route('/errors/dismiss', methods=['POST'])
def dismiss_sensor_error():
    current_app.config['ALTIMETER'].dismiss_error()
    return jsonify(_instrument_state())


@location_bp.route('/fix', methods=['POST'])
def push_fix():
    """
    Deliver a location fix from the host.

    Body: any subset of latitude, longitude, altitude, speed,
    horizontal_accuracy, vertical_accuracy, timestamp.
    """
    data = request.get_json(silent=True) or {}
    values = {}
    for name in LOCATION_FIELDS:
        raw = data.get(name)
        if raw is None:
            continue
        try:
            values[name] = float(raw)
        except (TypeError, ValueError):
            return jsonify({'error': f'{name} must be a number'}), 400

    if 'latitude' in values and not -90 <= values['latitude'] <= 90:
        return jsonify({'error': 'Latitude must be between -90 and 90'}), 400
    if 'longitude' in values and not -180 <= values['longitude'] <= 180:
        return jsonify({'error': 'Longitude must be between -180 and 180'}), 400

    source = current_app.config['LOCATION_SOURCE']
    delivered = source.push(LocationFix(**values))
    return jsonify({'delivered': delivered})


@location_bp.route('/authorization', methods=['PUT'])
def set_authorization():
    """Body: {"status": "granted" | "denied" | "restricted" | "undetermined"}"""
    data = request.get_json(silent=True) or {}
    try:
        status = AuthorizationStatus(data.get('status'))
    except ValueError:
        return jsonify({'error': 'Unknown authorization status'}), 400

    current_app.config['LOCATION_SOURCE'].set_authorization(status)
    current_app.config['LOCATION_TRACKER'].update_authorization(status)
    logger.info(f'Location authorization changed to {status.value}')
    return jsonify(_instrument_state())

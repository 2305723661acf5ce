"""
Recording API endpoints.

Provides endpoints for:
- GET  /api/recording            - Recorder status
- POST /api/recording/start      - Start a session (body: recording options)
- POST /api/recording/stop       - Stop the session
- POST /api/recording/background - Host left the foreground
- POST /api/recording/foreground - Host is back in the foreground
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from altimeter.recording import RecorderStateError, RecordingOptions
from altimeter.track_store import StorageError

logger = logging.getLogger(__name__)

recording_bp = Blueprint('recording', __name__, url_prefix='/api/recording')


@recording_bp.route('', methods=['GET'])
def get_status():
    return jsonify(current_app.config['RECORDER'].stats)


@recording_bp.route('/start', methods=['POST'])
def start_recording():
    """
    Start recording with the given field selection.

    Body (all optional, defaults shown in RecordingOptions):
        {"altitude_baro_display": true, "altitude_baro_sea_level": false,
         "altitude_gps": true, "speed_gps": true, "vertical_speed": true,
         "pressure": false, "qnh": true, "coordinates": true}
    """
    data = request.get_json(silent=True) or {}
    try:
        options = RecordingOptions.from_dict(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    recorder = current_app.config['RECORDER']
    try:
        track_id = recorder.start(options)
    except RecorderStateError as e:
        return jsonify({'error': str(e)}), 409
    except StorageError as e:
        logger.error(f'Recording start failed: {e}')
        return jsonify({'error': 'Could not create track'}), 503

    return jsonify({'track_id': track_id, **recorder.stats}), 201


@recording_bp.route('/stop', methods=['POST'])
def stop_recording():
    recorder = current_app.config['RECORDER']
    points = recorder.points_count
    track_id = recorder.stop()
    if track_id is None:
        return jsonify({'error': 'Not recording'}), 409
    return jsonify({'track_id': track_id, 'points_count': points})


@recording_bp.route('/background', methods=['POST'])
def enter_background():
    recorder = current_app.config['RECORDER']
    recorder.enter_background()
    return jsonify(recorder.stats)


@recording_bp.route('/foreground', methods=['POST'])
def enter_foreground():
    recorder = current_app.config['RECORDER']
    recorder.enter_foreground()
    return jsonify(recorder.stats)

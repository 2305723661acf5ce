"""
Altimeter Flask Application.

Main entry point for the web application. Initializes:
- Track database schema
- Saved reference values (QNH, start point, ceiling)
- Barometer and location inputs
- Track recorder
- API routes

Usage:
    python -m altimeter.app

Or with gunicorn:
    gunicorn 'altimeter.app:create_app()'
"""

import logging
import os
from pathlib import Path
from typing import Optional

from flask import Flask
from flask_cors import CORS

from altimeter.altimetry import Altimeter, PreferenceStore
from altimeter.api import altimeter_bp, location_bp, recording_bp, tracks_bp
from altimeter.config import config
from altimeter.recording import TrackRecorder
from altimeter.sources import (
    LocationSource,
    LocationTracker,
    PushLocationSource,
    PushSensorSource,
    SensorSource,
)
from altimeter.track_store import TrackStore

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    store: Optional[TrackStore] = None,
    sensor_source: Optional[SensorSource] = None,
    location_source: Optional[LocationSource] = None,
    preferences: Optional[PreferenceStore] = None,
    export_dir: Optional[Path] = None,
    start_sensors: bool = True,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        store: Track store; defaults to one on the configured database.
        sensor_source: Barometer input; defaults to a push-fed source.
        location_source: Location input; defaults to a push-fed source.
        preferences: Reference value storage; defaults to the configured file.
        export_dir: Directory for GPX files written by the export endpoint.
        start_sensors: Whether to subscribe to the barometer immediately.
                       Set to False for testing.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    # Initialize database
    logger.info('Initializing track store...')
    store = store or TrackStore()

    # Reference values survive restarts
    preferences = preferences or PreferenceStore()
    reference = preferences.load()
    preferences.attach(reference)

    sensor_source = sensor_source or PushSensorSource()
    location_source = location_source or PushLocationSource()

    altimeter = Altimeter(reference)
    if start_sensors and not altimeter.start_updates(sensor_source):
        logger.warning('Barometer not available, altitude will not be shown')

    location = LocationTracker(location_source)
    recorder = TrackRecorder(store, altimeter, location=location)

    app.config['TRACK_STORE'] = store
    app.config['PREFERENCES'] = preferences
    app.config['ALTIMETER'] = altimeter
    app.config['SENSOR_SOURCE'] = sensor_source
    app.config['LOCATION_SOURCE'] = location_source
    app.config['LOCATION_TRACKER'] = location
    app.config['RECORDER'] = recorder
    app.config['EXPORT_DIR'] = Path(export_dir) if export_dir is not None else config.storage.export_dir

    # Register API blueprints
    app.register_blueprint(altimeter_bp)
    app.register_blueprint(location_bp)
    app.register_blueprint(recording_bp)
    app.register_blueprint(tracks_bp)

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {
            'status': 'ok',
            'sensor_available': altimeter.is_available,
            'recording': recorder.is_recording,
            'store': store.stats,
        }

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting Altimeter on http://localhost:{port}')

    try:
        app.run(
            host='0.0.0.0',
            port=port,
            debug=config.debug,
            use_reloader=False,  # Disable reloader to prevent duplicate recorder threads
        )
    finally:
        app.config['RECORDER'].stop()


if __name__ == '__main__':
    run_development_server()

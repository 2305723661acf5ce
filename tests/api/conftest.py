"""API test fixtures."""

import dataclasses

import pytest

from altimeter.app import create_app
from altimeter.config import RecordingConfig, config


@pytest.fixture
def app(monkeypatch, store, sensor_source, location_source, preferences, tmp_path):
    """Application wired to a temp database; the recorder timer is effectively off."""
    slow_timer = dataclasses.replace(config, recording=RecordingConfig(tick_interval_seconds=3600.0))
    monkeypatch.setattr('altimeter.recording.recorder.config', slow_timer)

    app = create_app(
        store=store,
        sensor_source=sensor_source,
        location_source=location_source,
        preferences=preferences,
        export_dir=tmp_path / 'exports',
    )
    app.config['TESTING'] = True
    yield app
    app.config['RECORDER'].stop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def recorded_track(store, clock):
    """A finished two-minute track with three points, two of them with coordinates."""
    track_id = store.create_track('GPS altitude, Coordinates')
    start = clock.now
    store.append_point(track_id, start + 1, {
        'altitude_baro_sea_level': 480.0, 'speed_gps': 5.0, 'latitude': 46.5, 'longitude': 7.9,
    })
    store.append_point(track_id, start + 2, {'altitude_baro_sea_level': 490.0, 'speed_gps': 7.0})
    store.append_point(track_id, start + 3, {
        'altitude_baro_sea_level': 485.0, 'speed_gps': 6.0, 'latitude': 46.51, 'longitude': 7.9,
    })
    clock.advance(120)
    store.finish_track(track_id)
    return track_id

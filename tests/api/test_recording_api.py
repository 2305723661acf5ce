"""Tests for the recording endpoints and app-level routes."""

from altimeter.track_store import StorageError


class TestRecordingLifecycle:
    """Test start/stop over HTTP."""

    def test_status_idle(self, client):
        data = client.get('/api/recording').get_json()

        assert data['state'] == 'idle'
        assert data['track_id'] is None

    def test_start_and_stop(self, client, store):
        response = client.post('/api/recording/start', json={'pressure': True, 'coordinates': False})

        assert response.status_code == 201
        data = response.get_json()
        track_id = data['track_id']
        assert data['state'] == 'recording'
        assert data['options']['pressure'] is True
        assert data['options']['coordinates'] is False

        client.post('/api/altimeter/pressure', json={'pressure_kpa': 95.0, 'timestamp': 1.0})
        client.post('/api/location/fix', json={'altitude': 540.0, 'speed': 3.0})

        response = client.post('/api/recording/stop')

        assert response.status_code == 200
        assert response.get_json() == {'track_id': track_id, 'points_count': 1}

        point = store.points_for(track_id)[0]
        assert point.pressure_hpa == 950.0
        assert point.latitude is None
        assert client.get('/api/recording').get_json()['state'] == 'idle'

    def test_start_without_body_uses_defaults(self, client):
        data = client.post('/api/recording/start').get_json()

        assert data['options']['altitude_baro_display'] is True
        assert data['options']['altitude_baro_sea_level'] is False

    def test_unknown_option(self, client):
        response = client.post('/api/recording/start', json={'heart_rate': True})

        assert response.status_code == 400
        assert client.get('/api/recording').get_json()['state'] == 'idle'

    def test_double_start(self, client):
        client.post('/api/recording/start', json={})

        assert client.post('/api/recording/start', json={}).status_code == 409

    def test_stop_when_idle(self, client):
        assert client.post('/api/recording/stop').status_code == 409

    def test_storage_failure(self, client, store, monkeypatch):
        def fail(recorded_fields):
            raise StorageError('disk full')

        monkeypatch.setattr(store, 'create_track', fail)

        assert client.post('/api/recording/start', json={}).status_code == 503


class TestBackground:
    """Test background/foreground transitions over HTTP."""

    def test_background_and_foreground(self, client):
        client.post('/api/recording/start', json={})

        data = client.post('/api/recording/background').get_json()
        assert data['in_background'] is True
        assert data['suspended'] is False

        data = client.post('/api/recording/foreground').get_json()
        assert data['in_background'] is False


class TestAppRoutes:
    """Test health and error handlers."""

    def test_health(self, client):
        data = client.get('/health').get_json()

        assert data['status'] == 'ok'
        assert data['sensor_available'] is True
        assert data['recording'] is False

    def test_unknown_route(self, client):
        response = client.get('/api/nothing-here')

        assert response.status_code == 404
        assert response.get_json() == {'error': 'Not found'}

    def test_cors_headers(self, client):
        response = client.get('/api/tracks', headers={'Origin': 'http://example.com'})

        assert response.headers.get('Access-Control-Allow-Origin') == '*'

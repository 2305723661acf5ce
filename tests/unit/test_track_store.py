"""Unit tests for track persistence."""

import pytest
from sqlalchemy.exc import OperationalError

from altimeter.models import VALUE_FIELDS
from altimeter.track_store import TrackNotFoundError, TrackStore


def full_fields(**overrides):
    fields = {
        'altitude_baro_display': 12.5,
        'altitude_baro_sea_level': 480.0,
        'altitude_gps': 492.0,
        'speed_gps': 7.5,
        'vertical_speed': 1.2,
        'pressure_hpa': 955.1,
        'qnh_hpa': 1013.25,
        'latitude': 46.5,
        'longitude': 7.9,
    }
    fields.update(overrides)
    return fields


class TestTrackLifecycle:
    """Test creating and finishing tracks."""

    def test_create_track(self, store: TrackStore, clock):
        track_id = store.create_track('Altitude (from start), QNH')
        track = store.get_track(track_id)

        assert track is not None
        assert track.start_time == clock.now
        assert track.end_time == clock.now
        assert track.recorded_fields == 'Altitude (from start), QNH'

    def test_finish_track_sets_end(self, store: TrackStore, clock):
        track_id = store.create_track('')
        clock.advance(95.0)
        store.finish_track(track_id)

        track = store.get_track(track_id)
        assert track.duration_seconds == pytest.approx(95.0)

    def test_finish_unknown_track(self, store: TrackStore):
        with pytest.raises(TrackNotFoundError):
            store.finish_track(999)

    def test_get_unknown_track(self, store: TrackStore):
        assert store.get_track(999) is None

    def test_list_newest_first(self, store: TrackStore, clock):
        first = store.create_track('')
        clock.advance(60)
        second = store.create_track('')
        clock.advance(60)
        third = store.create_track('')

        assert [t.id for t in store.list_tracks()] == [third, second, first]

    def test_list_ties_broken_by_id(self, store: TrackStore):
        first = store.create_track('')
        second = store.create_track('')

        assert [t.id for t in store.list_tracks()] == [second, first]


class TestPoints:
    """Test appending and reading points."""

    def test_append_and_read(self, store: TrackStore, clock):
        track_id = store.create_track('')
        assert store.append_point(track_id, clock.now + 1, full_fields())

        points = store.points_for(track_id)
        assert len(points) == 1
        for name, value in full_fields().items():
            assert getattr(points[0], name) == value

    def test_missing_fields_are_null(self, store: TrackStore, clock):
        """Absent values come back as None, never 0."""
        track_id = store.create_track('')
        store.append_point(track_id, clock.now, {'altitude_gps': 0.0})

        point = store.points_for(track_id)[0]
        assert point.altitude_gps == 0.0
        for name in VALUE_FIELDS:
            if name != 'altitude_gps':
                assert getattr(point, name) is None

    def test_unknown_field_rejected(self, store: TrackStore, clock):
        track_id = store.create_track('')

        with pytest.raises(ValueError):
            store.append_point(track_id, clock.now, {'heart_rate': 120})

    def test_points_in_time_order(self, store: TrackStore, clock):
        track_id = store.create_track('')
        for offset in (3.0, 1.0, 2.0):
            store.append_point(track_id, clock.now + offset, {'altitude_gps': offset})

        assert [p.altitude_gps for p in store.points_for(track_id)] == [1.0, 2.0, 3.0]

    def test_append_to_missing_track_returns_false(self, store: TrackStore, clock):
        assert store.append_point(12345, clock.now, full_fields()) is False
        assert store.stats['write_errors'] == 1

    def test_points_are_per_track(self, store: TrackStore, clock):
        first = store.create_track('')
        second = store.create_track('')
        store.append_point(first, clock.now, {'altitude_gps': 1.0})
        store.append_point(second, clock.now, {'altitude_gps': 2.0})

        assert [p.altitude_gps for p in store.points_for(first)] == [1.0]
        assert [p.altitude_gps for p in store.points_for(second)] == [2.0]

    def test_stats_count_writes(self, store: TrackStore, clock):
        track_id = store.create_track('')
        store.append_point(track_id, clock.now, full_fields())
        store.append_point(track_id, clock.now + 1, full_fields())

        assert store.stats == {'points_written': 2, 'write_errors': 0}


class TestDelete:
    """Test deleting a track together with its points."""

    def test_delete_cascades(self, store: TrackStore, clock):
        track_id = store.create_track('')
        for offset in range(5):
            store.append_point(track_id, clock.now + offset, full_fields())

        assert store.delete_track(track_id) is True

        assert store.points_for(track_id) == []
        assert track_id not in [t.id for t in store.list_tracks()]
        assert store.get_track(track_id) is None

    def test_delete_keeps_other_tracks(self, store: TrackStore, clock):
        keep = store.create_track('')
        drop = store.create_track('')
        store.append_point(keep, clock.now, full_fields())
        store.append_point(drop, clock.now, full_fields())

        store.delete_track(drop)

        assert len(store.points_for(keep)) == 1
        assert [t.id for t in store.list_tracks()] == [keep]

    def test_delete_unknown_track(self, store: TrackStore):
        assert store.delete_track(999) is False


class TestPersistence:
    """Test that data survives a new store on the same database."""

    def test_reopen(self, session_factory, clock):
        store = TrackStore(session_factory=session_factory, clock=clock)
        track_id = store.create_track('GPS speed')
        store.append_point(track_id, clock.now, {'speed_gps': 4.0})

        reopened = TrackStore(session_factory=session_factory, clock=clock)

        assert reopened.get_track(track_id).recorded_fields == 'GPS speed'
        assert reopened.points_for(track_id)[0].speed_gps == 4.0


class TestReadFallback:
    """Test reads while the database is locked."""

    @pytest.fixture
    def locked(self, store: TrackStore, monkeypatch):
        def locked_session():
            raise OperationalError('SELECT', {}, Exception('database is locked'))

        def lock():
            monkeypatch.setattr(store, '_session_factory', locked_session)

        return lock

    def test_list_serves_last_result(self, store: TrackStore, locked):
        track_id = store.create_track('GPS speed')
        assert [t.id for t in store.list_tracks()] == [track_id]

        locked()

        assert [t.id for t in store.list_tracks()] == [track_id]
        assert store.get_track(track_id).recorded_fields == 'GPS speed'

    def test_points_serve_last_result(self, store: TrackStore, clock, locked):
        track_id = store.create_track('')
        store.append_point(track_id, clock.now + 1, {'speed_gps': 4.0})
        store.append_point(track_id, clock.now + 2, {'speed_gps': 5.0})
        store.points_for(track_id)

        locked()

        assert [p.speed_gps for p in store.points_for(track_id)] == [4.0, 5.0]

    def test_nothing_seen_yet(self, store: TrackStore, locked):
        locked()

        assert store.list_tracks() == []
        assert store.get_track(1) is None
        assert store.points_for(1) == []

"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from altimeter.altimetry import PreferenceStore
from altimeter.models import make_engine, make_session_factory
from altimeter.sources import AuthorizationStatus, PushLocationSource, PushSensorSource
from altimeter.track_store import TrackStore


class FakeClock:
    """Manually advanced clock, usable wherever a time.time-like callable is expected."""

    def __init__(self, start: float = 1714555800.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


# =============================================================================
# Clock Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Wall clock starting at 2024-05-01 09:30:00 UTC."""
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeClock:
    """Monotonic clock for rate limiting and leases."""
    return FakeClock(start=1000.0)


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def session_factory(tmp_path: Path):
    """Session factory bound to a fresh SQLite file."""
    engine = make_engine(f'sqlite:///{tmp_path / "tracks.sqlite"}', busy_timeout_seconds=1.0)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory, clock) -> TrackStore:
    """Track store with the schema created."""
    return TrackStore(session_factory=session_factory, clock=clock)


@pytest.fixture
def preferences(tmp_path: Path) -> PreferenceStore:
    return PreferenceStore(tmp_path / 'prefs' / 'altimeter_preferences.json')


# =============================================================================
# Source Fixtures
# =============================================================================


@pytest.fixture
def sensor_source() -> PushSensorSource:
    return PushSensorSource()


@pytest.fixture
def location_source() -> PushLocationSource:
    return PushLocationSource(authorization=AuthorizationStatus.GRANTED)

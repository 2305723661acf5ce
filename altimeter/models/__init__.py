"""
Database models for recorded tracks.

Schema designed for the recorder's workload:
1. One writer appending a point per second
2. Listing tracks newest first
3. Reading all points of one track in time order
"""

from altimeter.models.base import (
    Base,
    SessionLocal,
    engine,
    get_session,
    init_db,
    make_engine,
    make_session_factory,
)
from altimeter.models.track import Track
from altimeter.models.track_point import VALUE_FIELDS, TrackPoint

__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'init_db',
    'get_session',
    'make_engine',
    'make_session_factory',
    'Track',
    'TrackPoint',
    'VALUE_FIELDS',
]

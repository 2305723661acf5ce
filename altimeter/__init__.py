"""
Altimeter Package.

Barometric altimeter and flight track recorder built with Flask,
SQLAlchemy, and NumPy.

Modules:
    altimetry/   Pressure-to-altitude conversion, QNH/start point/ceiling references, vertical speed
    sources/     Barometer and location input interfaces and push-fed implementations
    recording/   Fixed-cadence track recorder with per-session field selection
    models/      SQLAlchemy ORM models (Track, TrackPoint)
    analytics/   NumPy-based track statistics and chart timelines
    export/      GPX 1.1 export
    api/         REST endpoints for the instrument, recording and tracks
    track_store.py  Thread-safe track persistence on SQLite
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'

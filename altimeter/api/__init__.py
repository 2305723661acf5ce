"""
API module for the altimeter.

Provides REST endpoints for:
- The live instrument (reading, QNH, start point, ceiling) and sensor input
- Recording sessions
- Recorded tracks (listing, points, statistics, GPX export)
"""

from altimeter.api.instrument import altimeter_bp, location_bp
from altimeter.api.recording import recording_bp
from altimeter.api.tracks import tracks_bp

__all__ = ['altimeter_bp', 'location_bp', 'recording_bp', 'tracks_bp']

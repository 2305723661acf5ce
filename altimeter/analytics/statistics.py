"""
Track statistics using NumPy.

Derives aggregate metrics from a recorded point sequence. Points are
sparse: any value column may be NULL because the session didn't record
it. Missing values become NaN in the working arrays and are masked out
of every aggregate, so "not recorded" never counts as 0.

Altitude for statistics uses the display preference order:
altitude from start, else sea-level altitude, else GPS altitude.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Optional, Sequence

import numpy as np

from altimeter.models import TrackPoint

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0


@dataclass
class TrackStatistics:
    """Aggregate metrics for one track."""
    duration_seconds: float
    points_count: int
    altitude_min_m: Optional[float] = None
    altitude_max_m: Optional[float] = None
    total_ascent_m: float = 0.0
    total_descent_m: float = 0.0
    max_climb_rate_ms: Optional[float] = None
    max_descent_rate_ms: Optional[float] = None
    avg_speed_ms: Optional[float] = None
    distance_m: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _column(points: Sequence[TrackPoint], getter) -> np.ndarray:
    """Float array with NaN where the value is absent."""
    values = [getter(p) for p in points]
    return np.array([np.nan if v is None else v for v in values], dtype=np.float64)


def haversine_distances_m(latitudes: np.ndarray, longitudes: np.ndarray) -> np.ndarray:
    """
    Great-circle distances between consecutive coordinates, in meters.

    Vectorized Haversine; returns an array one shorter than the input.
    """
    lat = np.radians(latitudes)
    lon = np.radians(longitudes)
    delta_lat = np.diff(lat)
    delta_lon = np.diff(lon)

    a = (
        np.sin(delta_lat / 2) ** 2 +
        np.cos(lat[:-1]) * np.cos(lat[1:]) *
        np.sin(delta_lon / 2) ** 2
    )
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def compute_statistics(
    points: Sequence[TrackPoint],
    start_time: float,
    end_time: float,
) -> TrackStatistics:
    """
    Compute statistics for a track's points (expected in time order).

    An empty sequence yields zero ascent/descent and None elsewhere.
    """
    duration = end_time - start_time
    if not points:
        return TrackStatistics(duration_seconds=duration, points_count=0)

    altitudes = _column(points, lambda p: p.best_altitude)
    stats = TrackStatistics(duration_seconds=duration, points_count=len(points))

    # Altitude range
    present = altitudes[~np.isnan(altitudes)]
    if present.size:
        stats.altitude_min_m = float(np.min(present))
        stats.altitude_max_m = float(np.max(present))

    # Ascent/descent over consecutive pairs; a NaN on either side drops the pair
    deltas = np.diff(altitudes)
    deltas = deltas[~np.isnan(deltas)]
    climbs = deltas[deltas > 0]
    drops = -deltas[deltas < 0]
    stats.total_ascent_m = float(np.sum(climbs)) if climbs.size else 0.0
    stats.total_descent_m = float(np.sum(drops)) if drops.size else 0.0

    # Rates: recorded vertical speed first, largest single step otherwise
    vertical = _column(points, lambda p: p.vertical_speed)
    vertical = vertical[~np.isnan(vertical)]
    positive = vertical[vertical > 0]
    negative = vertical[vertical < 0]

    if positive.size:
        stats.max_climb_rate_ms = float(np.max(positive))
    elif climbs.size:
        stats.max_climb_rate_ms = float(np.max(climbs))

    if negative.size:
        stats.max_descent_rate_ms = float(np.max(np.abs(negative)))
    elif drops.size:
        stats.max_descent_rate_ms = float(np.max(drops))

    # Average GPS speed
    speeds = _column(points, lambda p: p.speed_gps)
    speeds = speeds[~np.isnan(speeds)]
    speeds = speeds[speeds >= 0]
    if speeds.size:
        stats.avg_speed_ms = float(np.mean(speeds))

    # Distance over coordinate-bearing points
    with_coords = [p for p in points if p.has_coordinates]
    if len(with_coords) >= 2:
        latitudes = np.array([p.latitude for p in with_coords], dtype=np.float64)
        longitudes = np.array([p.longitude for p in with_coords], dtype=np.float64)
        stats.distance_m = float(np.sum(haversine_distances_m(latitudes, longitudes)))

    logger.debug(f'Computed statistics for {len(points)} points')
    return stats

"""
Track timeline - altitude and speed against elapsed time.

Feeds scrubbable charts: one sample per point, time measured from the
session start. Absent values stay None; it is up to the renderer to
leave a gap rather than plot zero.
"""

import bisect
from dataclasses import dataclass
from typing import List, Optional, Sequence

from altimeter.models import TrackPoint


@dataclass(frozen=True)
class TimelineSample:
    elapsed_seconds: float
    altitude_m: Optional[float]
    speed_ms: Optional[float]
    vertical_speed_ms: Optional[float]
    latitude: Optional[float]
    longitude: Optional[float]

    def to_dict(self) -> dict:
        return {
            'elapsed_seconds': round(self.elapsed_seconds, 3),
            'altitude_m': self.altitude_m,
            'speed_ms': self.speed_ms,
            'vertical_speed_ms': self.vertical_speed_ms,
            'latitude': self.latitude,
            'longitude': self.longitude,
        }


def build_timeline(points: Sequence[TrackPoint], start_time: float) -> List[TimelineSample]:
    return [
        TimelineSample(
            elapsed_seconds=p.timestamp - start_time,
            altitude_m=p.best_altitude,
            speed_ms=p.speed_gps,
            vertical_speed_ms=p.vertical_speed,
            latitude=p.latitude,
            longitude=p.longitude,
        )
        for p in points
    ]


def sample_index_at(timeline: Sequence[TimelineSample], elapsed_seconds: float) -> Optional[int]:
    """Index of the sample closest to elapsed_seconds, None for an empty timeline."""
    if not timeline:
        return None
    times = [s.elapsed_seconds for s in timeline]
    i = bisect.bisect_left(times, elapsed_seconds)
    if i == 0:
        return 0
    if i == len(times):
        return len(times) - 1
    before, after = times[i - 1], times[i]
    return i - 1 if elapsed_seconds - before <= after - elapsed_seconds else i


def sample_at(timeline: Sequence[TimelineSample], elapsed_seconds: float) -> Optional[TimelineSample]:
    index = sample_index_at(timeline, elapsed_seconds)
    return None if index is None else timeline[index]

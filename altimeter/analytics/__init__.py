"""
Analytics module.

Statistics and chart series derived from recorded track points.
"""

from altimeter.analytics.statistics import (
    TrackStatistics,
    compute_statistics,
    haversine_distances_m,
)
from altimeter.analytics.timeline import (
    TimelineSample,
    build_timeline,
    sample_at,
    sample_index_at,
)

__all__ = [
    'TimelineSample',
    'TrackStatistics',
    'build_timeline',
    'compute_statistics',
    'haversine_distances_m',
    'sample_at',
    'sample_index_at',
]

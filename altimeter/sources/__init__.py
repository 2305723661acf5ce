"""
Sensor and location inputs.

The hardware layer is external; this package defines the interfaces the
core consumes and the push-fed implementations used by the host edge.
"""

from altimeter.sources.base import (
    AuthorizationStatus,
    LocationFix,
    LocationSource,
    PressureSample,
    SensorSource,
    Subscription,
)
from altimeter.sources.location import LocationSnapshot, LocationTracker
from altimeter.sources.push import PushLocationSource, PushSensorSource

__all__ = [
    'AuthorizationStatus',
    'LocationFix',
    'LocationSnapshot',
    'LocationSource',
    'LocationTracker',
    'PressureSample',
    'PushLocationSource',
    'PushSensorSource',
    'SensorSource',
    'Subscription',
]

"""
Recording options - which optional point fields a session writes.

Chosen once when recording starts and frozen for the session. A field
that is switched off is stored as NULL even when a value was available.
"""

from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional

from altimeter.altimetry.altimeter import AltimeterReading
from altimeter.sources.location import LocationSnapshot

FIELD_LABELS = {
    'altitude_baro_display': 'Altitude (from start)',
    'altitude_baro_sea_level': 'Altitude (sea level)',
    'altitude_gps': 'GPS altitude',
    'speed_gps': 'GPS speed',
    'vertical_speed': 'Vertical speed',
    'pressure': 'Pressure',
    'qnh': 'QNH',
    'coordinates': 'Coordinates',
}


@dataclass(frozen=True)
class RecordingOptions:
    """Per-session field selection."""
    altitude_baro_display: bool = True
    altitude_baro_sea_level: bool = False
    altitude_gps: bool = True
    speed_gps: bool = True
    vertical_speed: bool = True
    pressure: bool = False
    qnh: bool = True
    coordinates: bool = True

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'RecordingOptions':
        """Build from a partial mapping; unknown keys raise ValueError."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f'Unknown recording options: {sorted(unknown)}')
        return cls(**{key: bool(value) for key, value in data.items()})

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def uses_location(self) -> bool:
        """Whether the session needs GPS updates at all."""
        return self.altitude_gps or self.speed_gps or self.coordinates

    def describe(self) -> str:
        """Human-readable list of the selected fields, stored with the track."""
        return ', '.join(label for name, label in FIELD_LABELS.items() if getattr(self, name))

    def mask(
        self,
        reading: AltimeterReading,
        location: LocationSnapshot,
    ) -> Dict[str, Optional[float]]:
        """
        Column values for one point.

        Unselected fields are None. Barometric altitudes are None until the
        sensor has produced a valid reading.
        """
        baro_display = reading.altitude_display_m if reading.has_reading else None
        baro_sea = reading.altitude_from_barometer_m if reading.has_reading else None

        return {
            'altitude_baro_display': baro_display if self.altitude_baro_display else None,
            'altitude_baro_sea_level': baro_sea if self.altitude_baro_sea_level else None,
            'altitude_gps': location.altitude_m if self.altitude_gps else None,
            'speed_gps': location.speed_ms if self.speed_gps else None,
            'vertical_speed': reading.vertical_speed_ms if self.vertical_speed else None,
            'pressure_hpa': reading.pressure_hpa if self.pressure else None,
            'qnh_hpa': reading.qnh_hpa if self.qnh else None,
            'latitude': location.latitude if self.coordinates else None,
            'longitude': location.longitude if self.coordinates else None,
        }

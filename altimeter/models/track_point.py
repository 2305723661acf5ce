"""
TrackPoint model - time-series telemetry storage.

One row per recorder tick. Append-only: points are never updated and are
only deleted together with their track.

Every value column is nullable. NULL means "not recorded / unknown" and
is never interchangeable with 0.0; downstream consumers must keep the
distinction.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Float, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from altimeter.models.base import Base

# Point attributes that a RecordingOptions flag can switch off
VALUE_FIELDS = (
    'altitude_baro_display',
    'altitude_baro_sea_level',
    'altitude_gps',
    'speed_gps',
    'vertical_speed',
    'pressure_hpa',
    'qnh_hpa',
    'latitude',
    'longitude',
)


class TrackPoint(Base):
    """A single recorded telemetry sample."""

    __tablename__ = 'track_points'

    # Surrogate primary key for the ORM; ordering uses ts
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    track_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('tracks.id'),
        nullable=False,
    )

    timestamp: Mapped[float] = mapped_column('ts', Float, nullable=False)

    # Barometric altitude relative to the start point
    altitude_baro_display: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Barometric altitude above the QNH reference
    altitude_baro_sea_level: Mapped[Optional[float]] = mapped_column('altitude_baro_sea', Float, nullable=True)

    altitude_gps: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    speed_gps: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    vertical_speed: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    pressure_hpa: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    qnh_hpa: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Position (WGS84)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    __table_args__ = (
        Index('idx_track_points_track', 'track_id'),
    )

    def __repr__(self) -> str:
        return f'<TrackPoint track={self.track_id} @ {self.timestamp:.1f}>'

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def best_altitude(self) -> Optional[float]:
        """Altitude for display: relative, else sea level, else GPS."""
        if self.altitude_baro_display is not None:
            return self.altitude_baro_display
        if self.altitude_baro_sea_level is not None:
            return self.altitude_baro_sea_level
        return self.altitude_gps

    @property
    def elevation(self) -> Optional[float]:
        """Elevation above sea level for export: sea level, else GPS, else relative."""
        if self.altitude_baro_sea_level is not None:
            return self.altitude_baro_sea_level
        if self.altitude_gps is not None:
            return self.altitude_gps
        return self.altitude_baro_display

    def to_dict(self) -> dict:
        result = {
            'track_id': self.track_id,
            'timestamp': datetime.fromtimestamp(self.timestamp, tz=timezone.utc).isoformat(),
        }
        for name in VALUE_FIELDS:
            result[name] = getattr(self, name)
        return result

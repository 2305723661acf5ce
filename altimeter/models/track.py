"""
Track model - one recording session.

A track row is created when recording starts (end == start) and updated
exactly once, when recording stops. The recorded_fields text is a fixed,
human-readable summary of which optional point fields the session wrote.
"""

from datetime import datetime, timezone

from sqlalchemy import Float, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from altimeter.models.base import Base


class Track(Base):
    """A named recording session."""

    __tablename__ = 'tracks'

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Unix seconds (float) to keep sub-second precision
    start_time: Mapped[float] = mapped_column('start_ts', Float, nullable=False)
    end_time: Mapped[float] = mapped_column('end_ts', Float, nullable=False)

    recorded_fields: Mapped[str] = mapped_column(Text, nullable=False, default='')

    def __repr__(self) -> str:
        return f'<Track {self.id} @ {self.start_time:.0f} ({self.duration_seconds:.0f}s)>'

    @property
    def duration_seconds(self) -> float:
        return self.end_time - self.start_time

    @property
    def start_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.start_time, tz=timezone.utc)

    @property
    def end_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.end_time, tz=timezone.utc)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'start_time': self.start_datetime.isoformat(),
            'end_time': self.end_datetime.isoformat(),
            'duration_seconds': round(self.duration_seconds, 3),
            'recorded_fields': self.recorded_fields,
        }

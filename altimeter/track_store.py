"""
Track store - durable storage of tracks and their points.

Single source of truth for track listing and retrieval. The underlying
SQLite engine takes one writer at a time, so all writes go through a
lock held by this store. Reads never take that lock: they rely on WAL
and a short busy timeout, and if the database is still locked they
return the last result they saw instead of waiting.

Failure policy:
- create_track / finish_track / delete_track raise StorageError
- append_point logs and returns False; a lost point must never end a
  recording session
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Mapping, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from altimeter.models import VALUE_FIELDS, SessionLocal, Track, TrackPoint, get_session, init_db

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A track could not be created, finished or deleted."""


class TrackNotFoundError(StorageError):
    """No track with the requested id."""


class TrackStore:
    """Thread-safe CRUD for Track and TrackPoint rows."""

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        clock: Callable[[], float] = time.time,
        create_schema: bool = True,
    ):
        self._session_factory = session_factory or SessionLocal
        self._clock = clock
        self._write_lock = threading.Lock()

        # Last successful read results, served when the database is busy
        self._last_tracks: List[Track] = []
        self._last_points: Dict[int, List[TrackPoint]] = {}

        # Statistics
        self._points_written = 0
        self._write_errors = 0

        if create_schema:
            init_db(self._session_factory.kw['bind'])

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_track(self, recorded_fields: str) -> int:
        """Insert a new track with start = end = now and return its id."""
        now = self._clock()
        track = Track(start_time=now, end_time=now, recorded_fields=recorded_fields)

        with self._write_lock:
            try:
                with get_session(self._session_factory) as session:
                    session.add(track)
                    session.flush()
                    track_id = track.id
            except SQLAlchemyError as e:
                logger.error(f'Failed to create track: {e}')
                raise StorageError(f'Failed to create track: {e}') from e

        logger.info(f'Created track {track_id} ({recorded_fields})')
        return track_id

    def append_point(
        self,
        track_id: int,
        timestamp: float,
        fields: Mapping[str, Optional[float]],
    ) -> bool:
        """
        Append one point. Unknown field names are rejected; missing ones are NULL.

        Returns False (after logging) if the write failed.
        """
        unknown = set(fields) - set(VALUE_FIELDS)
        if unknown:
            raise ValueError(f'Unknown track point fields: {sorted(unknown)}')

        point = TrackPoint(track_id=track_id, timestamp=timestamp, **dict(fields))

        with self._write_lock:
            try:
                with get_session(self._session_factory) as session:
                    session.add(point)
            except SQLAlchemyError as e:
                self._write_errors += 1
                logger.error(f'Failed to write point for track {track_id}: {e}')
                return False

        self._points_written += 1
        return True

    def finish_track(self, track_id: int) -> None:
        """Set end = now."""
        now = self._clock()
        with self._write_lock:
            try:
                with get_session(self._session_factory) as session:
                    result = session.execute(
                        update(Track).where(Track.id == track_id).values(end_time=now)
                    )
            except SQLAlchemyError as e:
                logger.error(f'Failed to finish track {track_id}: {e}')
                raise StorageError(f'Failed to finish track {track_id}: {e}') from e

        if result.rowcount == 0:
            raise TrackNotFoundError(f'Track {track_id} not found')
        logger.info(f'Finished track {track_id}')

    def delete_track(self, track_id: int) -> bool:
        """
        Delete a track and all of its points in one transaction.

        Returns False if the track did not exist.
        """
        with self._write_lock:
            try:
                with get_session(self._session_factory) as session:
                    points_result = session.execute(
                        delete(TrackPoint).where(TrackPoint.track_id == track_id)
                    )
                    track_result = session.execute(
                        delete(Track).where(Track.id == track_id)
                    )
            except SQLAlchemyError as e:
                logger.error(f'Failed to delete track {track_id}: {e}')
                raise StorageError(f'Failed to delete track {track_id}: {e}') from e

        self._last_points.pop(track_id, None)
        self._last_tracks = [t for t in self._last_tracks if t.id != track_id]

        if track_result.rowcount == 0:
            return False
        logger.info(f'Deleted track {track_id} with {points_result.rowcount} points')
        return True

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_tracks(self) -> List[Track]:
        """All tracks, newest first."""
        try:
            with self._session_factory() as session:
                stmt = select(Track).order_by(Track.start_time.desc(), Track.id.desc())
                tracks = list(session.execute(stmt).scalars().all())
        except OperationalError as e:
            logger.warning(f'Track list unavailable, serving last known state: {e}')
            return list(self._last_tracks)

        self._last_tracks = tracks
        return list(tracks)

    def get_track(self, track_id: int) -> Optional[Track]:
        try:
            with self._session_factory() as session:
                return session.get(Track, track_id)
        except OperationalError as e:
            logger.warning(f'Track {track_id} unavailable, serving last known state: {e}')
            for track in self._last_tracks:
                if track.id == track_id:
                    return track
            return None

    def points_for(self, track_id: int) -> List[TrackPoint]:
        """All points of a track, oldest first."""
        try:
            with self._session_factory() as session:
                stmt = (
                    select(TrackPoint)
                    .where(TrackPoint.track_id == track_id)
                    .order_by(TrackPoint.timestamp.asc(), TrackPoint.id.asc())
                )
                points = list(session.execute(stmt).scalars().all())
        except OperationalError as e:
            logger.warning(f'Points for track {track_id} unavailable, serving last known state: {e}')
            return list(self._last_points.get(track_id, []))

        # Only the most recently viewed track is kept as fallback
        self._last_points = {track_id: points}
        return list(points)

    @property
    def stats(self) -> dict:
        """Write statistics."""
        return {
            'points_written': self._points_written,
            'write_errors': self._write_errors,
        }

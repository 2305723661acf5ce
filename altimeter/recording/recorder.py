"""
Track recorder - fixed-cadence sampling of the instrument into a track.

Lifecycle: IDLE -> RECORDING -> STOPPING -> IDLE. A new session can only
start once the previous track has been closed.

While recording, a background thread ticks once per tick_interval and
each accepted location fix (rate-limited by the LocationTracker) ticks as
well. Every tick snapshots the altimeter and GPS values, masks them with
the session's RecordingOptions and appends one point to the store.

Concurrency rules:
- ticks are serialized by a lock; two ticks closer than
  min_point_interval collapse into one point (the later is suppressed)
- stop() is effective for every tick that has not started yet; a tick
  already writing is allowed to finish before the track is closed
- in the background, ticks run on a leased grace period and stop before
  the lease runs out, so the host never kills a half-written point
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from altimeter.altimetry.altimeter import Altimeter
from altimeter.config import config
from altimeter.recording.lease import LeaseHandle, LeaseProvider, TimedLeaseProvider
from altimeter.recording.options import RecordingOptions
from altimeter.sources.location import LocationSnapshot, LocationTracker
from altimeter.track_store import StorageError, TrackStore

logger = logging.getLogger(__name__)

_NO_LOCATION = LocationSnapshot(altitude_m=None, speed_ms=None, latitude=None, longitude=None)


class RecorderState(str, Enum):
    """Recording session state."""
    IDLE = 'idle'
    RECORDING = 'recording'
    STOPPING = 'stopping'


class RecorderStateError(RuntimeError):
    """Operation not valid in the current recorder state."""


class TrackRecorder:
    """
    Drives one recording session at a time.

    The recorder is the only writer of track points.
    """

    def __init__(
        self,
        store: TrackStore,
        altimeter: Altimeter,
        location: Optional[LocationTracker] = None,
        lease_provider: Optional[LeaseProvider] = None,
        tick_interval: Optional[float] = None,
        min_point_interval: Optional[float] = None,
        background_budget: Optional[float] = None,
        safety_margin: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.altimeter = altimeter
        self.location = location
        self.lease_provider = lease_provider or TimedLeaseProvider()

        self.tick_interval = tick_interval or config.recording.tick_interval_seconds
        self.min_point_interval = (
            min_point_interval if min_point_interval is not None
            else config.recording.min_point_interval_seconds
        )
        self.background_budget = background_budget or config.recording.background_budget_seconds
        self.safety_margin = (
            safety_margin if safety_margin is not None
            else config.recording.background_safety_margin_seconds
        )

        self._clock = clock
        self._monotonic = monotonic

        # Session state
        self._state = RecorderState.IDLE
        self._options: Optional[RecordingOptions] = None
        self._track_id: Optional[int] = None
        self._start_time: Optional[float] = None
        self._points_count = 0
        self._last_point_at: Optional[float] = None

        # Background handling
        self._lease: Optional[LeaseHandle] = None
        self._in_background = False
        self._suspended = False

        # Ticking machinery
        self._tick_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

        # Statistics
        self._suppressed_ticks = 0
        self._failed_writes = 0

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == RecorderState.RECORDING

    @property
    def track_id(self) -> Optional[int]:
        return self._track_id

    @property
    def options(self) -> Optional[RecordingOptions]:
        return self._options

    @property
    def points_count(self) -> int:
        return self._points_count

    @property
    def start_time(self) -> Optional[float]:
        return self._start_time

    @property
    def elapsed_seconds(self) -> float:
        if self._start_time is None:
            return 0.0
        return self._clock() - self._start_time

    @property
    def is_suspended(self) -> bool:
        return self._suspended

    @property
    def in_background(self) -> bool:
        return self._in_background

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    def start(self, options: Optional[RecordingOptions] = None) -> int:
        """
        Begin a session and return the new track id.

        Raises StorageError if the track row cannot be created; the
        recorder then stays idle.
        """
        options = options or RecordingOptions()

        with self._state_lock:
            if self._state == RecorderState.RECORDING:
                raise RecorderStateError(f'Already recording track {self._track_id}')
            if self._state == RecorderState.STOPPING:
                raise RecorderStateError(f'Still closing track {self._track_id}')

            track_id = self.store.create_track(options.describe())

            self._options = options
            self._track_id = track_id
            self._start_time = self._clock()
            self._points_count = 0
            self._last_point_at = None
            self._suspended = False
            self._in_background = False
            self._state = RecorderState.RECORDING

        if options.uses_location and self.location is not None:
            self.location.start_updates()
            self.location.recording_mode = True
            self.location.add_point_ready_callback(self._on_point_ready)

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run_timer,
            args=(self._stop_event,),
            name=f'track-recorder-{track_id}',
            daemon=True,
        )
        self._thread.start()

        logger.info(f'Recording started: track {track_id} ({options.describe()})')
        return track_id

    def stop(self) -> Optional[int]:
        """
        End the session and return the finished track id.

        Returns None if nothing was recording.
        """
        with self._state_lock:
            if self._state != RecorderState.RECORDING:
                return None
            # No new tick passes the state check after this point
            self._state = RecorderState.STOPPING
            track_id = self._track_id
            options = self._options
            stop_event = self._stop_event
            thread = self._thread
            self._stop_event = None
            self._thread = None

        if stop_event is not None:
            stop_event.set()

        if options is not None and options.uses_location and self.location is not None:
            self.location.remove_point_ready_callback(self._on_point_ready)
            self.location.recording_mode = False
            self.location.stop_updates()

        # Wait for an in-flight tick to finish writing
        with self._tick_lock:
            self._release_lease()
            self._suspended = False
            self._in_background = False

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)

        try:
            self.store.finish_track(track_id)
        except StorageError as e:
            logger.error(f'Could not close track {track_id}: {e}')

        with self._state_lock:
            self._track_id = None
            self._state = RecorderState.IDLE
        logger.info(f'Recording stopped: track {track_id}, {self._points_count} points')
        return track_id

    # -------------------------------------------------------------------------
    # Ticking
    # -------------------------------------------------------------------------

    def _run_timer(self, stop_event: threading.Event) -> None:
        """Timer loop for one session; exits when that session's event is set."""
        while not stop_event.wait(self.tick_interval):
            try:
                self.record_point(trigger='timer')
            except Exception as e:
                logger.error(f'Recording tick error: {e}')

    def _on_point_ready(self) -> None:
        self.record_point(trigger='location')

    def record_point(self, trigger: str = 'manual') -> bool:
        """
        Write one point for the current session.

        Returns True if a point was stored.
        """
        if self._state != RecorderState.RECORDING or self._suspended:
            return False

        with self._tick_lock:
            if self._state != RecorderState.RECORDING or self._suspended:
                return False

            if not self._lease_allows_tick():
                return False

            now = self._monotonic()
            if self._last_point_at is not None and now - self._last_point_at < self.min_point_interval:
                self._suppressed_ticks += 1
                logger.debug(f'Suppressed {trigger} tick {now - self._last_point_at:.2f}s after previous point')
                return False
            self._last_point_at = now

            reading = self.altimeter.reading()
            location = self.location.snapshot() if self.location is not None else _NO_LOCATION
            fields = self._options.mask(reading, location)

            if self.store.append_point(self._track_id, self._clock(), fields):
                self._points_count += 1
                return True

            self._failed_writes += 1
            return False

    # -------------------------------------------------------------------------
    # Background execution
    # -------------------------------------------------------------------------

    def enter_background(self) -> None:
        """Host is leaving the foreground: lease extra time to keep recording."""
        if not self.is_recording:
            return
        with self._tick_lock:
            self._in_background = True
            if self._lease is not None:
                return
            self._lease = self.lease_provider.acquire_lease(self.background_budget)
            if self._lease is None:
                self._suspended = True
                logger.warning('Background time refused, recording suspended until foreground')
            else:
                logger.info(f'Background lease acquired ({self.background_budget:.0f}s)')

    def enter_foreground(self) -> None:
        """Host is back in the foreground: drop the lease and tick normally."""
        with self._tick_lock:
            self._in_background = False
            self._release_lease()
            if self._suspended:
                logger.info('Recording resumed in foreground')
            self._suspended = False

    def _lease_allows_tick(self) -> bool:
        """Called under the tick lock before every write."""
        if self._lease is None:
            return True

        remaining = self._lease.remaining()
        if remaining is None:
            # Host reports no limit: we are effectively in the foreground
            self._release_lease()
            return True

        if remaining < self.safety_margin:
            logger.info(f'Background lease nearly expired ({remaining:.1f}s left), suspending recording')
            self._release_lease()
            self._suspended = True
            return False

        return True

    def _release_lease(self) -> None:
        if self._lease is not None:
            self._lease.release()
            self._lease = None

    @property
    def stats(self) -> dict:
        """Get recorder statistics."""
        return {
            'state': self._state.value,
            'track_id': self._track_id,
            'points_count': self._points_count,
            'elapsed_seconds': round(self.elapsed_seconds, 1) if self.is_recording else 0.0,
            'in_background': self._in_background,
            'suspended': self._suspended,
            'suppressed_ticks': self._suppressed_ticks,
            'failed_writes': self._failed_writes,
            'options': self._options.to_dict() if self._options else None,
        }

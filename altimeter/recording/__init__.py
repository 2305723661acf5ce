"""
Recording module.

Turns the live instrument into stored tracks: per-session field
selection, the fixed-cadence recorder and the background lease it runs
on while the host is not in the foreground.
"""

from altimeter.recording.lease import LeaseHandle, LeaseProvider, TimedLease, TimedLeaseProvider
from altimeter.recording.options import RecordingOptions
from altimeter.recording.recorder import RecorderState, RecorderStateError, TrackRecorder

__all__ = [
    'LeaseHandle',
    'LeaseProvider',
    'RecorderState',
    'RecorderStateError',
    'RecordingOptions',
    'TimedLease',
    'TimedLeaseProvider',
    'TrackRecorder',
]

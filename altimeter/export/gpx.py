"""
GPX 1.1 export of a recorded track.

Only points with both coordinates are exported, in time order, as one
track segment. Elevation prefers the sea-level barometric altitude
because telemetry overlay tools expect height above sea level:
sea level, else GPS, else altitude from start, else 0.
"""

import logging
import os
import tempfile
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape

from altimeter.models import Track, TrackPoint

logger = logging.getLogger(__name__)

GPX_CREATOR = 'Altimeter'
TRACK_NAME_FORMAT = '%Y-%m-%d %H-%M'

# Quotes are escaped in text as well, not only in attributes
_QUOTE_ENTITIES = {'"': '&quot;', "'": '&apos;'}


class ExportError(Exception):
    """The track could not be exported; no file was left behind."""


def xml_escape(text: str) -> str:
    return escape(text, _QUOTE_ENTITIES)


def sanitize_file_name(name: str) -> str:
    """Keep letters, digits, space, '-', '_' and '.'; replace anything else with '_'."""
    return ''.join(ch if ch.isalnum() or ch in ' -_.' else '_' for ch in name)


def track_name(start_time: float, tz: Optional[tzinfo] = None) -> str:
    """Track name from the session start, in local time unless tz is given."""
    if tz is None:
        start = datetime.fromtimestamp(start_time).astimezone()
    else:
        start = datetime.fromtimestamp(start_time, tz=tz)
    return start.strftime(TRACK_NAME_FORMAT)


def format_gpx_time(timestamp: float) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2024-05-01T09:30:00.250Z."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def exportable_points(points: Sequence[TrackPoint]) -> List[TrackPoint]:
    """Coordinate-bearing points in time order."""
    return sorted((p for p in points if p.has_coordinates), key=lambda p: p.timestamp)


def gpx_string(track: Track, points: Sequence[TrackPoint], tz: Optional[tzinfo] = None) -> str:
    """Render the GPX document."""
    name = xml_escape(track_name(track.start_time, tz))

    trkpt_lines = []
    for p in exportable_points(points):
        elevation = p.elevation if p.elevation is not None else 0.0
        trkpt_lines.append(f'      <trkpt lat="{p.latitude!r}" lon="{p.longitude!r}">')
        trkpt_lines.append(f'        <ele>{elevation:.2f}</ele>')
        trkpt_lines.append(f'        <time>{format_gpx_time(p.timestamp)}</time>')
        trkpt_lines.append('      </trkpt>')

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<gpx version="1.1" creator="{xml_escape(GPX_CREATOR)}" '
        'xmlns="http://www.topografix.com/GPX/1/1" '
        'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xsi:schemaLocation="http://www.topografix.com/GPX/1/1 '
        'http://www.topografix.com/GPX/1/1/gpx.xsd">',
        '  <trk>',
        f'    <name>{name}</name>',
        '    <trkseg>',
        *trkpt_lines,
        '    </trkseg>',
        '  </trk>',
        '</gpx>',
    ]
    return '\n'.join(lines) + '\n'


def export_file_name(track: Track, tz: Optional[tzinfo] = None) -> str:
    return sanitize_file_name(track_name(track.start_time, tz)) + '.gpx'


def write_gpx(
    track: Track,
    points: Sequence[TrackPoint],
    directory: Path,
    tz: Optional[tzinfo] = None,
) -> Path:
    """
    Write the track to <directory>/<track name>.gpx and return the path.

    The document is written to a temporary file and renamed into place,
    so a failure never leaves a partial export.
    """
    if not exportable_points(points):
        raise ExportError(f'Track {track.id} has no points with coordinates')

    document = gpx_string(track, points, tz)
    directory = Path(directory)
    target = directory / export_file_name(track, tz)

    tmp_path = None
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix='.export-', suffix='.gpx', dir=directory)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(document)
        os.replace(tmp_path, target)
    except OSError as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        logger.error(f'GPX export of track {track.id} failed: {e}')
        raise ExportError(f'Could not write {target}: {e}') from e

    logger.info(f'Exported track {track.id} to {target}')
    return target

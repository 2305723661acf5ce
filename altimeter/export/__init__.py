"""
Export module - interchange formats for recorded tracks.
"""

from altimeter.export.gpx import (
    ExportError,
    export_file_name,
    gpx_string,
    sanitize_file_name,
    track_name,
    write_gpx,
    xml_escape,
)

__all__ = [
    'ExportError',
    'export_file_name',
    'gpx_string',
    'sanitize_file_name',
    'track_name',
    'write_gpx',
    'xml_escape',
]

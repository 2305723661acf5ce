"""Unit tests for GPX export."""

import xml.etree.ElementTree as ET
from datetime import timezone

import pytest

from altimeter.export import (
    ExportError,
    export_file_name,
    gpx_string,
    sanitize_file_name,
    track_name,
    write_gpx,
    xml_escape,
)
from altimeter.export.gpx import format_gpx_time
from altimeter.models import Track, TrackPoint

START = 1714555800.0  # 2024-05-01 09:30:00 UTC
NS = {'gpx': 'http://www.topografix.com/GPX/1/1'}


@pytest.fixture
def track() -> Track:
    return Track(id=7, start_time=START, end_time=START + 120, recorded_fields='')


def point(offset: float, **values) -> TrackPoint:
    return TrackPoint(track_id=7, timestamp=START + offset, **values)


class TestHelpers:
    """Test escaping, naming and time formatting."""

    def test_xml_escape(self):
        assert xml_escape('a<b>&"c\'') == 'a&lt;b&gt;&amp;&quot;c&apos;'

    def test_sanitize_file_name(self):
        assert sanitize_file_name('2024-05-01 09-30') == '2024-05-01 09-30'
        assert sanitize_file_name('a/b:c*d') == 'a_b_c_d'

    def test_track_name(self):
        assert track_name(START, tz=timezone.utc) == '2024-05-01 09-30'

    def test_export_file_name(self, track):
        assert export_file_name(track, tz=timezone.utc) == '2024-05-01 09-30.gpx'

    def test_time_has_milliseconds(self):
        assert format_gpx_time(START) == '2024-05-01T09:30:00.000Z'
        assert format_gpx_time(START + 0.25) == '2024-05-01T09:30:00.250Z'


class TestGpxString:
    """Test the rendered document."""

    def test_only_coordinate_points_exported(self, track):
        points = [
            point(0, latitude=46.5, longitude=7.9, altitude_baro_sea_level=480.0),
            point(1, altitude_baro_sea_level=481.0),
            point(2, latitude=46.6, longitude=8.0, altitude_baro_sea_level=482.0),
        ]
        root = ET.fromstring(gpx_string(track, points, tz=timezone.utc))

        trkpts = root.findall('gpx:trk/gpx:trkseg/gpx:trkpt', NS)
        assert [(p.get('lat'), p.get('lon')) for p in trkpts] == [('46.5', '7.9'), ('46.6', '8.0')]

    def test_document_header(self, track):
        root = ET.fromstring(gpx_string(track, [point(0, latitude=1.0, longitude=2.0)], tz=timezone.utc))

        assert root.get('version') == '1.1'
        assert root.get('creator') == 'Altimeter'
        assert root.find('gpx:trk/gpx:name', NS).text == '2024-05-01 09-30'

    def test_points_in_time_order(self, track):
        points = [
            point(5, latitude=2.0, longitude=2.0),
            point(1, latitude=1.0, longitude=1.0),
        ]
        root = ET.fromstring(gpx_string(track, points, tz=timezone.utc))

        times = [t.text for t in root.iter('{http://www.topografix.com/GPX/1/1}time')]
        assert times == ['2024-05-01T09:30:01.000Z', '2024-05-01T09:30:05.000Z']

    @pytest.mark.parametrize('values, expected', [
        ({'altitude_baro_sea_level': 480.123, 'altitude_gps': 490.0, 'altitude_baro_display': 5.0}, '480.12'),
        ({'altitude_gps': 490.0, 'altitude_baro_display': 5.0}, '490.00'),
        ({'altitude_baro_display': 5.0}, '5.00'),
        ({}, '0.00'),
    ])
    def test_elevation_preference(self, track, values, expected):
        points = [point(0, latitude=1.0, longitude=2.0, **values)]
        root = ET.fromstring(gpx_string(track, points, tz=timezone.utc))

        assert root.find('gpx:trk/gpx:trkseg/gpx:trkpt/gpx:ele', NS).text == expected


class TestWriteGpx:
    """Test writing export files."""

    def test_writes_file(self, track, tmp_path):
        path = write_gpx(track, [point(0, latitude=1.0, longitude=2.0)], tmp_path / 'exports', tz=timezone.utc)

        assert path == tmp_path / 'exports' / '2024-05-01 09-30.gpx'
        assert path.read_text(encoding='utf-8').startswith('<?xml')
        assert [p.name for p in path.parent.iterdir()] == [path.name]

    def test_no_coordinates_fails_without_file(self, track, tmp_path):
        with pytest.raises(ExportError):
            write_gpx(track, [point(0, altitude_gps=100.0)], tmp_path / 'exports')

        assert not (tmp_path / 'exports').exists()

    def test_write_failure(self, track, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('', encoding='utf-8')

        with pytest.raises(ExportError):
            write_gpx(track, [point(0, latitude=1.0, longitude=2.0)], blocker)

        assert blocker.read_text(encoding='utf-8') == ''

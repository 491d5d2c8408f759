from datetime import UTC, datetime

import pytest

from gpxtrace.exceptions.trace_error import MalformedGpxError
from gpxtrace.format.gpx import FormatGPX
from tests.utils.gpx_data import gpx_bytes, line


def test_decode_file():
    result = FormatGPX.decode_file(gpx_bytes([line(997)], invalid=3))
    assert result.size == 997
    assert result.skipped == 3
    assert result.segments == 1

    point = result.points[0]
    assert point.latitude == 50
    assert point.longitude == 20
    assert point.altitude == 100.5
    assert point.timestamp == datetime(2024, 5, 1, 8, 0, tzinfo=UTC)
    assert point.segment == 0


def test_decode_file_segments():
    result = FormatGPX.decode_file(gpx_bytes([line(2), line(3), line(1)]))
    assert [p.segment for p in result.points] == [0, 0, 1, 1, 1, 2]
    assert result.segments == 3


def test_decode_file_malformed():
    with pytest.raises(MalformedGpxError):
        FormatGPX.decode_file(b'<gpx><trk><trkseg></gpx>')


def test_decode_file_concatenated_documents():
    gpx = gpx_bytes([line(2)])
    with pytest.raises(MalformedGpxError):
        FormatGPX.decode_file(gpx + gpx)


@pytest.mark.parametrize(
    'data',
    [
        b'<gpx/>',
        b'<gpx xmlns="http://www.topografix.com/GPX/1/1"><metadata><name>empty</name></metadata></gpx>',
        b'<kml><Document/></kml>',
    ],
)
def test_decode_file_empty(data):
    result = FormatGPX.decode_file(data)
    assert result.size == 0
    assert result.skipped == 0


@pytest.mark.parametrize(
    ('trkpt', 'valid'),
    [
        ({'@lat': '1', '@lon': '2', 'time': '2020-01-01T00:00:00Z'}, True),
        ({'@lat': '-90', '@lon': '180', 'time': '2020-01-01T00:00:00Z'}, True),
        ({'@lat': '1', '@lon': '2', 'time': '2020-01-01T00:00:00Z', 'ele': 'high'}, True),
        ({'@lat': '1', '@lon': '2'}, False),
        ({'@lat': '91', '@lon': '2', 'time': '2020-01-01T00:00:00Z'}, False),
        ({'@lat': '1', '@lon': '-180.1', 'time': '2020-01-01T00:00:00Z'}, False),
        ({'@lat': 'north', '@lon': '2', 'time': '2020-01-01T00:00:00Z'}, False),
        ({'@lon': '2', 'time': '2020-01-01T00:00:00Z'}, False),
        ({'@lat': '1', '@lon': '2', 'time': 'yesterday'}, False),
        ('text', False),
    ],
)
def test_decode_tracks_point_validation(trkpt, valid):
    result = FormatGPX.decode_tracks([{'trkseg': [{'trkpt': [trkpt]}]}])
    assert result.size == int(valid)
    assert result.skipped == int(not valid)


def test_decode_tracks_invalid_elevation_dropped():
    result = FormatGPX.decode_tracks([
        {'trkseg': [{'trkpt': [{'@lat': '1', '@lon': '2', 'time': '2020-01-01T00:00:00Z', 'ele': 'NaN'}]}]}
    ])
    assert result.points[0].altitude is None


def test_decode_tracks_segments_across_tracks():
    trkpt = {'@lat': '1', '@lon': '2', 'time': '2020-01-01T00:00:00Z'}
    result = FormatGPX.decode_tracks([
        {'trkseg': [{'trkpt': [trkpt]}, {}]},
        {'trkseg': [{'trkpt': [trkpt, trkpt]}]},
    ])
    assert [p.segment for p in result.points] == [0, 2, 2]
    assert result.segments == 3

from datetime import UTC, datetime

import pytest

from gpxtrace.exceptions.trace_error import InvalidMetadataXml, InvalidUserInput, TraceIdMismatchError
from gpxtrace.format import Format06
from gpxtrace.lib.xmltodict import XMLToDict
from gpxtrace.models.db.trace import Trace
from gpxtrace.models.types import TraceId, UserId


def _gpx_file(**attrs) -> dict:
    return {
        **{f'@{k}': v for k, v in attrs.items()},
        'description': 'Morning ride',
        'tag': ['bike', 'commute'],
    }


def test_decode_gpx_file():
    meta = Format06.decode_gpx_file(_gpx_file(id='7', visibility='public'), trace_id=TraceId(7), create=False)
    assert meta.visibility == 'public'
    assert meta.description == 'Morning ride'
    assert meta.tags == ['bike', 'commute']


def test_decode_gpx_file_create_ignores_id():
    meta = Format06.decode_gpx_file(_gpx_file(visibility='private'), trace_id=None, create=True)
    assert meta.visibility == 'private'


def test_decode_gpx_file_empty_elements():
    gpx_file = XMLToDict.parse(b'<gpx_file visibility="trackable"><description/><tag/></gpx_file>')['gpx_file']
    meta = Format06.decode_gpx_file(gpx_file, trace_id=None, create=True)  # pyright: ignore[reportArgumentType]
    assert meta.description == ''
    assert meta.tags == ['']


@pytest.mark.parametrize(
    ('gpx_file', 'error', 'message'),
    [
        ({'@id': '7', 'description': 'x'}, InvalidMetadataXml, 'visibility missing'),
        ({'@id': '7', '@visibility': 'secret', 'description': 'x'}, InvalidMetadataXml, 'visibility'),
        ({'@visibility': 'public', 'description': 'x'}, InvalidMetadataXml, 'ID is required when updating.'),
        ({'@id': '0', '@visibility': 'public', 'description': 'x'}, InvalidUserInput, 'cannot be zero'),
        ({'@id': 'abc', '@visibility': 'public', 'description': 'x'}, InvalidUserInput, 'cannot be zero'),
        ({'@id': '7', '@visibility': 'public'}, InvalidMetadataXml, 'description missing'),
        ({'@id': '7', '@visibility': 'public', 'description': ['a', 'b']}, InvalidMetadataXml, 'given once'),
    ],
)
def test_decode_gpx_file_invalid(gpx_file, error, message):
    with pytest.raises(error, match=message):
        Format06.decode_gpx_file(gpx_file, trace_id=TraceId(7), create=False)


def test_decode_gpx_file_id_mismatch():
    with pytest.raises(TraceIdMismatchError) as e:
        Format06.decode_gpx_file(_gpx_file(id='5', visibility='public'), trace_id=TraceId(7), create=False)

    assert isinstance(e.value, InvalidMetadataXml)
    assert isinstance(e.value, InvalidUserInput)
    assert e.value.expected_id == 7
    assert e.value.actual_id == 5


def test_encode_gpx_file():
    trace = Trace(
        user_id=UserId(3),
        name='ride.gpx',
        description='Morning ride',
        visibility='identifiable',
        timestamp=datetime(2024, 5, 1, tzinfo=UTC),
    )
    trace.set_tags(['bike'])

    gpx_file = Format06.encode_gpx_file(trace)['gpx_file']
    assert gpx_file['@uid'] == 3
    assert gpx_file['@name'] == 'ride.gpx'
    assert gpx_file['@visibility'] == 'identifiable'
    assert gpx_file['@pending'] is True
    assert gpx_file['@lat'] is None
    assert gpx_file['tag'] == ['bike']

    xml = XMLToDict.unparse({'osm': Format06.encode_gpx_file(trace)})
    assert 'description' in XMLToDict.parse(xml.encode())['osm']['gpx_file'][0]  # pyright: ignore[reportAttributeAccessIssue,reportIndexIssue]

import bz2
import gzip

import pytest

from gpxtrace.exceptions.trace_error import InvalidMetadataXml, TraceIdMismatchError, TraceNotFound
from gpxtrace.lib.attachment import Attachment
from gpxtrace.lib.storage import get_storage
from gpxtrace.lib.storage.db import DBStorage
from gpxtrace.models.db.trace import Trace
from gpxtrace.models.trace_config import TraceConfig
from gpxtrace.models.types import TraceId, UserId
from gpxtrace.queries.trace_point_query import TracePointQuery
from gpxtrace.services import trace_service
from gpxtrace.services.trace_import_service import TraceImportService
from gpxtrace.services.trace_service import TraceService
from tests.utils.gpx_data import gpx_bytes, line
from tests.utils.trace_factory import create_legacy_trace, create_trace

_GPX = gpx_bytes([line(20)])


@pytest.mark.parametrize(
    ('file_bytes', 'content_type', 'extension'),
    [
        (_GPX, 'application/gpx+xml', '.gpx'),
        (gzip.compress(_GPX), 'application/gzip', '.gpx.gz'),
        (bz2.compress(_GPX), 'application/x-bzip2', '.gpx.bz2'),
    ],
)
async def test_create(file_bytes, content_type, extension, config: TraceConfig):
    trace = await create_trace(file_bytes, config, name='upload.gpx', tags='a, b')

    assert trace.id
    assert trace.visible
    assert not trace.inserted
    assert trace.tag_names == ['a', 'b']

    attachment = await Attachment.of(trace.id, 'file', config).get()
    assert attachment is not None
    assert attachment.filename == f'{trace.id}{extension}'
    assert attachment.content_type == content_type
    assert attachment.byte_size == len(file_bytes)
    assert await Attachment.of(trace.id, 'file', config).download() == file_bytes

    assert await TraceService.mime_type(trace, config) == content_type
    assert await TraceService.extension_name(trace, config) == extension


async def test_get_by_id_not_found():
    with pytest.raises(TraceNotFound):
        await TraceService.get_by_id(TraceId(1 << 40))


async def test_update_from_xml_and_save(config: TraceConfig):
    trace = await create_trace(_GPX, config, tags='old')
    trace.visible = False

    TraceService.update_from_xml(
        trace,
        f'<osm><gpx_file id="{trace.id}" visibility="trackable">'
        '<description>Updated</description><tag>new1</tag><tag>new2</tag>'
        '</gpx_file></osm>',
    )
    assert trace.visibility == 'trackable'
    assert trace.description == 'Updated'
    assert trace.tag_names == ['new1', 'new2']
    assert trace.visible

    await TraceService.save(trace, config)

    trace = await TraceService.get_by_id(trace.id)
    assert trace.visibility == 'trackable'
    assert trace.description == 'Updated'
    assert trace.tag_names == ['new1', 'new2']


def test_update_from_xml_id_mismatch():
    trace = Trace(user_id=UserId(1), name='test.gpx', description='Original', visibility='private')
    trace.id = 7

    with pytest.raises(TraceIdMismatchError):
        TraceService.update_from_xml(
            trace,
            b'<osm><gpx_file id="5" visibility="public"><description>New</description></gpx_file></osm>',
        )

    assert trace.visibility == 'private'
    assert trace.description == 'Original'


@pytest.mark.parametrize(
    'xml',
    [
        b'<osm><gpx_file visibility="public"/></osm>',
        b'<osm><gpx_file description="x"><description>x</description></gpx_file></osm>',
        b'<osm><gpx_file visibility="public"><description>a</description><description>b</description></gpx_file></osm>',
        b'<osm><note/></osm>',
        b'<osm><gpx_file',
    ],
)
def test_update_from_xml_invalid(xml):
    trace = Trace(user_id=UserId(1), name='test.gpx', description='Original', visibility='private')

    with pytest.raises(InvalidMetadataXml):
        TraceService.update_from_xml(trace, xml, create=True)

    assert trace.description == 'Original'


def test_update_from_xml_bare_gpx_file():
    trace = Trace(user_id=UserId(1), name='test.gpx', description='', visibility='private')

    TraceService.update_from_xml(
        trace,
        b'<gpx_file visibility="identifiable"><description>Bare</description></gpx_file>',
        create=True,
    )
    assert trace.visibility == 'identifiable'
    assert trace.description == 'Bare'
    assert trace.tags == []


async def test_destroy(config: TraceConfig):
    trace = await create_trace(_GPX, config)
    await TraceImportService.import_trace(trace.id, config)

    keys = {}
    for name in ('file', 'image', 'icon'):
        attachment = await Attachment.of(trace.id, name, config).get()
        assert attachment is not None
        keys[name] = attachment.key

    config.trace_path(trace.id).write_bytes(b'legacy')

    await TraceService.destroy(trace, config)

    with pytest.raises(TraceNotFound):
        await TraceService.get_by_id(trace.id)
    assert await TracePointQuery.count_by_trace_id(trace.id) == 0
    assert not config.trace_path(trace.id).exists()

    for name, key in keys.items():
        attachment = Attachment.of(trace.id, name, config)
        assert not await attachment.is_attached()
        with pytest.raises(FileNotFoundError):
            await attachment.storage.load(key)


async def test_destroy_continues_after_failure(config: TraceConfig, monkeypatch: pytest.MonkeyPatch):
    trace = await create_trace(_GPX, config)
    await TraceImportService.import_trace(trace.id, config)

    keys = {}
    for name in ('file', 'image', 'icon'):
        attachment = await Attachment.of(trace.id, name, config).get()
        assert attachment is not None
        keys[name] = attachment.key

    config.trace_path(trace.id).write_bytes(b'legacy')
    config.image_path(trace.id).write_bytes(b'legacy image')

    image_storage = get_storage(config.image_storage_url)
    delete = DBStorage.delete

    async def failing_delete(self, key):
        if self is image_storage:
            raise OSError('storage unavailable')
        await delete(self, key)

    reported = []
    monkeypatch.setattr(DBStorage, 'delete', failing_delete)
    monkeypatch.setattr(trace_service, 'capture_exception', lambda *_: reported.append(True))

    await TraceService.destroy(trace, config)

    with pytest.raises(TraceNotFound):
        await TraceService.get_by_id(trace.id)
    assert len(reported) == 1
    assert not config.trace_path(trace.id).exists()
    assert not config.image_path(trace.id).exists()

    # the failed blob stays behind, the others are gone
    assert (await image_storage.load(keys['image'])).startswith(b'GIF')
    for name in ('file', 'icon'):
        with pytest.raises(FileNotFoundError):
            await Attachment.of(trace.id, name, config).storage.load(keys[name])


async def test_pictures(config: TraceConfig):
    trace = await create_trace(_GPX, config)
    await TraceImportService.import_trace(trace.id, config)

    assert (await TraceService.large_picture(trace, config)).startswith(b'GIF')
    assert (await TraceService.icon_picture(trace, config)).startswith(b'GIF')


async def test_pictures_legacy(config: TraceConfig):
    trace = await create_legacy_trace(_GPX, config, inserted=True)
    config.image_path(trace.id).write_bytes(b'GIF89a image')
    config.icon_path(trace.id).write_bytes(b'GIF89a icon')

    assert await TraceService.large_picture(trace, config) == b'GIF89a image'
    assert await TraceService.icon_picture(trace, config) == b'GIF89a icon'
    assert await TraceService.mime_type(trace, config) == 'application/gpx+xml'

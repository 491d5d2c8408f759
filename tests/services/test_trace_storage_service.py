import gzip

from gpxtrace.lib.attachment import Attachment
from gpxtrace.models.trace_config import TraceConfig
from gpxtrace.services.trace_storage_service import TraceStorageService
from tests.utils.gpx_data import gpx_bytes, line
from tests.utils.trace_factory import create_legacy_trace

_GPX = gpx_bytes([line(20)])


async def test_migrate_to_storage(config: TraceConfig):
    file_bytes = gzip.compress(_GPX)
    trace = await create_legacy_trace(file_bytes, config, inserted=True)
    config.image_path(trace.id).write_bytes(b'GIF89a image')
    config.icon_path(trace.id).write_bytes(b'GIF89a icon')

    await TraceStorageService.migrate_to_storage(trace, config)

    file = await Attachment.of(trace.id, 'file', config).get()
    assert file is not None
    assert file.filename == f'{trace.id}.gpx.gz'
    assert file.content_type == 'application/gzip'
    assert await Attachment.of(trace.id, 'file', config).download() == file_bytes

    image = await Attachment.of(trace.id, 'image', config).get()
    assert image is not None
    assert image.filename == f'{trace.id}.gif'
    assert image.content_type == 'image/gif'
    assert await Attachment.of(trace.id, 'icon', config).download() == b'GIF89a icon'

    assert not config.trace_path(trace.id).exists()
    assert not config.image_path(trace.id).exists()
    assert not config.icon_path(trace.id).exists()


async def test_migrate_to_storage_not_inserted(config: TraceConfig):
    trace = await create_legacy_trace(_GPX, config)

    await TraceStorageService.migrate_to_storage(trace, config)

    assert await Attachment.of(trace.id, 'file', config).is_attached()
    assert not await Attachment.of(trace.id, 'image', config).is_attached()
    assert not await Attachment.of(trace.id, 'icon', config).is_attached()
    assert not config.trace_path(trace.id).exists()


async def test_remove_files_missing(config: TraceConfig):
    trace = await create_legacy_trace(_GPX, config)
    config.image_path(trace.id).write_bytes(b'GIF89a image')

    await TraceStorageService.remove_files(trace, config)
    await TraceStorageService.remove_files(trace, config)

    assert not config.trace_path(trace.id).exists()
    assert not config.image_path(trace.id).exists()

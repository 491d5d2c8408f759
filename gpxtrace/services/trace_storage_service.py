import logging
from pathlib import Path

from anyio import to_thread

from gpxtrace.lib.attachment import Attachment
from gpxtrace.lib.trace_file import TraceFile
from gpxtrace.lib.trace_image import TraceImage
from gpxtrace.models.db.trace import Trace
from gpxtrace.models.trace_config import TraceConfig


class TraceStorageService:
    @staticmethod
    async def migrate_to_storage(trace: Trace, config: TraceConfig) -> None:
        """
        Move the legacy files of a trace into blob storage.

        The original file is always attached; the image and icon only once the
        trace was imported. The legacy files are removed afterwards.
        """
        data = await _read(config.trace_path(trace.id))
        content_type = TraceFile.content_type(TraceFile.classify(data))
        await Attachment.of(trace.id, 'file', config).attach(data, trace.name, content_type)

        if trace.inserted:
            image = await _read(config.image_path(trace.id))
            await Attachment.of(trace.id, 'image', config).attach(
                image, f'{trace.id}{TraceImage.image_suffix}', TraceImage.content_type
            )
            icon = await _read(config.icon_path(trace.id))
            await Attachment.of(trace.id, 'icon', config).attach(
                icon, f'{trace.id}{TraceImage.icon_suffix}', TraceImage.content_type
            )

        await TraceStorageService.set_filename(trace, config)
        await TraceStorageService.remove_files(trace, config)
        logging.info('Migrated trace %d to storage', trace.id)

    @staticmethod
    async def set_filename(trace: Trace, config: TraceConfig) -> None:
        """Derive the attached file name from the trace id and the file content type."""
        file = Attachment.of(trace.id, 'file', config)
        attachment = await file.get()
        if attachment is None:
            return

        filename = f'{trace.id}{TraceFile.extension(attachment.content_type)}'
        if attachment.filename != filename:
            await file.update_filename(filename)

    @staticmethod
    async def remove_files(trace: Trace, config: TraceConfig) -> None:
        """Remove the legacy files of a trace. Missing files are ignored."""
        for path in (
            config.trace_path(trace.id),
            config.image_path(trace.id),
            config.icon_path(trace.id),
        ):
            path.unlink(missing_ok=True)


async def _read(path: Path) -> bytes:
    return await to_thread.run_sync(path.read_bytes)

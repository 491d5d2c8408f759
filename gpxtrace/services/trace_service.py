import logging
from collections.abc import Iterable
from pathlib import Path

from anyio import to_thread
from sentry_sdk import capture_exception
from sqlalchemy import delete, select

from gpxtrace.db import db
from gpxtrace.format import Format06
from gpxtrace.lib.attachment import Attachment
from gpxtrace.lib.exceptions_context import raise_for
from gpxtrace.lib.storage import get_storage
from gpxtrace.lib.trace_file import TraceFile
from gpxtrace.lib.xmltodict import XMLSyntaxError, XMLToDict
from gpxtrace.models.db.trace import Trace, TraceVisibility
from gpxtrace.models.db.trace_attachment import TraceAttachment
from gpxtrace.models.db.trace_point import TracePoint
from gpxtrace.models.db.trace_tag import TraceTag
from gpxtrace.models.trace_config import TraceConfig
from gpxtrace.models.types import TraceId, UserId
from gpxtrace.queries.trace_query import TraceQuery
from gpxtrace.services.trace_storage_service import TraceStorageService


class TraceService:
    @staticmethod
    async def create(
        *,
        user_id: UserId,
        name: str,
        description: str,
        visibility: TraceVisibility,
        tags: str | Iterable[str],
        file_bytes: bytes,
        config: TraceConfig,
    ) -> Trace:
        """
        Create a trace from an uploaded file.

        The file is attached as-is; its points are imported later.
        """
        trace = Trace(
            user_id=user_id,
            name=name,
            description=description,
            visibility=visibility,
        )
        if isinstance(tags, str):
            trace.set_tag_string(tags)
        else:
            trace.set_tags(tags)

        content_type = TraceFile.content_type(TraceFile.classify(file_bytes))

        async with db(True) as session:
            session.add(trace)

        try:
            await Attachment.of(trace.id, 'file', config).attach(file_bytes, name, content_type)
            await TraceStorageService.set_filename(trace, config)
        except Exception:
            # Clean up the trace on error
            await TraceService.destroy(trace, config)
            raise

        logging.info('Created trace %d (%s) for user %d', trace.id, content_type, user_id)
        return trace

    @staticmethod
    async def save(trace: Trace, config: TraceConfig) -> Trace:
        """Store the changes of a trace and re-derive the attached file name."""
        async with db(True) as session:
            trace = await session.merge(trace)

        await TraceStorageService.set_filename(trace, config)
        return trace

    @staticmethod
    async def get_by_id(trace_id: TraceId) -> Trace:
        """
        Get a trace by id.
        Raises if the trace does not exist.
        """
        return await TraceQuery.get_by_id(trace_id)

    @staticmethod
    def update_from_xml(trace: Trace, xml: bytes | str, *, create: bool = False) -> None:
        """
        Update the trace metadata from an <osm><gpx_file/></osm> document.

        The document is fully validated before the trace is modified.
        The changes are not saved.
        """
        try:
            data = XMLToDict.parse(xml.encode() if isinstance(xml, str) else xml)
        except XMLSyntaxError as e:
            raise_for.bad_trace_xml(str(e), xml)

        gpx_file = _find_gpx_file(data)
        if gpx_file is None:
            raise_for.bad_trace_xml("XML doesn't contain an osm/gpx_file element.", xml)

        meta = Format06.decode_gpx_file(gpx_file, trace_id=trace.id, create=create)

        trace.visibility = meta.visibility
        trace.description = meta.description
        trace.set_tags(meta.tags)
        trace.visible = True

    @staticmethod
    async def destroy(trace: Trace, config: TraceConfig) -> None:
        """
        Delete a trace with its points, tags and attachments, and remove its legacy files.

        The database rows are deleted first. A failure to remove any stored
        artifact afterwards is reported and does not stop the remaining cleanup.
        """
        trace_id = trace.id

        async with db(True) as session:
            stmt = select(TraceAttachment).where(TraceAttachment.trace_id == trace_id)
            attachments = (await session.scalars(stmt)).all()

            await session.execute(delete(TracePoint).where(TracePoint.trace_id == trace_id))
            await session.execute(delete(TraceTag).where(TraceTag.trace_id == trace_id))
            await session.execute(delete(TraceAttachment).where(TraceAttachment.trace_id == trace_id))
            await session.execute(delete(Trace).where(Trace.id == trace_id))

        storage_urls = {
            'file': config.file_storage_url,
            'image': config.image_storage_url,
            'icon': config.icon_storage_url,
        }

        for attachment in attachments:
            try:
                await get_storage(storage_urls[attachment.name]).delete(attachment.key)
            except Exception:
                logging.warning('Failed to delete %r of trace %d', attachment.name, trace_id, exc_info=True)
                capture_exception()

        try:
            await TraceStorageService.remove_files(trace, config)
        except Exception:
            logging.warning('Failed to remove legacy files of trace %d', trace_id, exc_info=True)
            capture_exception()

        logging.info('Destroyed trace %d', trace_id)

    @staticmethod
    async def large_picture(trace: Trace, config: TraceConfig) -> bytes:
        """Get the full-size trace image."""
        image = Attachment.of(trace.id, 'image', config)
        if await image.is_attached():
            return await image.download()
        return await _read(config.image_path(trace.id))

    @staticmethod
    async def icon_picture(trace: Trace, config: TraceConfig) -> bytes:
        """Get the trace icon."""
        icon = Attachment.of(trace.id, 'icon', config)
        if await icon.is_attached():
            return await icon.download()
        return await _read(config.icon_path(trace.id))

    @staticmethod
    async def mime_type(trace: Trace, config: TraceConfig) -> str:
        """Get the content type of the original trace file."""
        attachment = await Attachment.of(trace.id, 'file', config).get()
        if attachment is not None:
            return attachment.content_type

        data = await _read(config.trace_path(trace.id))
        return TraceFile.content_type(TraceFile.classify(data))

    @staticmethod
    async def extension_name(trace: Trace, config: TraceConfig) -> str:
        """Get the file name extension of the original trace file."""
        return TraceFile.extension(await TraceService.mime_type(trace, config))


def _find_gpx_file(data: dict) -> dict | None:
    osm = data.get('osm')
    if isinstance(osm, dict):
        gpx_files = osm.get('gpx_file')
        if gpx_files and isinstance(gpx_files[0], dict):
            return gpx_files[0]
        return None

    # a bare gpx_file root element
    gpx_file = data.get('gpx_file')
    return gpx_file if isinstance(gpx_file, dict) else None


async def _read(path: Path) -> bytes:
    return await to_thread.run_sync(path.read_bytes)

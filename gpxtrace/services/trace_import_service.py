import logging

from anyio import to_thread
from sizestr import sizestr
from sqlalchemy import update

from gpxtrace.db import db
from gpxtrace.exceptions.trace_error import TraceError
from gpxtrace.format.gpx import DecodeTracksResult, FormatGPX
from gpxtrace.lib.attachment import Attachment
from gpxtrace.lib.exceptions_context import raise_for
from gpxtrace.lib.trace_file import ContentKind, TraceFile
from gpxtrace.lib.trace_image import TraceImage
from gpxtrace.models.db.trace import Trace
from gpxtrace.models.trace_config import TraceConfig
from gpxtrace.models.types import TraceId
from gpxtrace.queries.trace_point_query import TracePointQuery
from gpxtrace.queries.trace_query import TraceQuery
from gpxtrace.services.trace_point_service import TracePointService


class TraceImportService:
    @staticmethod
    async def import_trace(trace_id: TraceId, config: TraceConfig) -> DecodeTracksResult:
        """
        Import the points of a trace from its original file and render its images.

        The trace is marked as inserted only after the points are stored and
        both images are attached. A file without valid points leaves no points
        and the trace not inserted. The import may be repeated, each run
        replaces the previous points.
        Concurrent imports of the same trace must be serialized by the caller.
        """
        trace = await TraceQuery.get_by_id(trace_id)
        logging.info('Importing trace %r (%d) of user %d', trace.name, trace.id, trace.user_id)

        kind: ContentKind | None = None
        try:
            buffer = await _load_file(trace, config)
            kind = TraceFile.classify(buffer)
            gpx_bytes = await TraceFile.extract(buffer, kind, config)
            result = FormatGPX.decode_file(gpx_bytes)

            if trace.inserted:
                await _mark_not_inserted(trace)

            await TracePointService.replace(trace.id, result.points, batch_size=config.point_batch_size)

            if result.size:
                await _render_and_mark_inserted(trace, result, config)

        except Exception as e:
            logging.warning(
                'Failed to import trace %d (%s): %s',
                trace.id,
                kind.value if kind is not None else 'unknown',
                e.detail if isinstance(e, TraceError) else repr(e),
            )
            raise

        logging.info(
            'Imported trace %d (%s): %d points in %d segments, %d skipped',
            trace.id,
            kind.value,
            result.size,
            result.segments,
            result.skipped,
        )
        return result


async def _load_file(trace: Trace, config: TraceConfig) -> bytes:
    file = Attachment.of(trace.id, 'file', config)
    if await file.is_attached():
        buffer = await file.download()
    else:
        path = config.trace_path(trace.id)
        logging.debug('Trace %d has no attached file, reading %r', trace.id, str(path))
        buffer = await to_thread.run_sync(path.read_bytes)

    logging.debug('Loaded trace %d file of %s', trace.id, sizestr(len(buffer)))
    return buffer


async def _render_and_mark_inserted(trace: Trace, result: DecodeTracksResult, config: TraceConfig) -> None:
    bounds = await TracePointQuery.get_bounds(trace.id)
    if bounds is None:
        raise_for.trace_points_persist_failed(trace.id, LookupError('no stored points after import'))

    points = await TracePointQuery.find_many_by_trace_id(trace.id)
    image, icon = await TraceImage.generate_async(points, bounds, config)

    await Attachment.of(trace.id, 'image', config).attach(
        image, f'{trace.id}{TraceImage.image_suffix}', TraceImage.content_type
    )
    await Attachment.of(trace.id, 'icon', config).attach(
        icon, f'{trace.id}{TraceImage.icon_suffix}', TraceImage.content_type
    )

    first = result.points[0]
    values = {
        'latitude': first.latitude,
        'longitude': first.longitude,
        'size': result.size,
        'inserted': True,
    }
    async with db(True) as session:
        await session.execute(update(Trace).where(Trace.id == trace.id).values(values))

    for k, v in values.items():
        setattr(trace, k, v)


async def _mark_not_inserted(trace: Trace) -> None:
    # the stored points are about to change, the derived state goes with them
    async with db(True) as session:
        await session.execute(update(Trace).where(Trace.id == trace.id).values(inserted=False))
    trace.inserted = False

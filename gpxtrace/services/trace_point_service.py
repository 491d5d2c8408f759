import logging
from collections.abc import Sequence
from itertools import batched

from sqlalchemy import delete, insert
from sqlalchemy.exc import SQLAlchemyError

from gpxtrace.config import TRACE_POINT_BATCH_SIZE
from gpxtrace.db import db
from gpxtrace.lib.exceptions_context import raise_for
from gpxtrace.models.db.trace_point import COORDINATE_SCALE, TracePoint
from gpxtrace.models.types import TraceId
from gpxtrace.models.validating.trace_point import DecodedPoint


class TracePointService:
    @staticmethod
    async def replace(
        trace_id: TraceId,
        points: Sequence[DecodedPoint],
        *,
        batch_size: int = TRACE_POINT_BATCH_SIZE,
    ) -> int:
        """
        Replace the stored points of a trace. Returns the number of inserted points.

        Existing points are deleted first, then the new points are inserted
        in batches, one statement per batch. Everything happens in a single
        transaction; on failure the previous points are kept.
        """
        try:
            async with db(True) as session:
                result = await session.execute(delete(TracePoint).where(TracePoint.trace_id == trace_id))
                logging.debug('Deleted %d old points of trace %d', result.rowcount, trace_id)  # pyright: ignore[reportAttributeAccessIssue]

                for batch in batched(points, batch_size):
                    await session.execute(insert(TracePoint), point_rows(trace_id, batch))

        except SQLAlchemyError as e:
            raise_for.trace_points_persist_failed(trace_id, e)

        logging.debug('Inserted %d points of trace %d', len(points), trace_id)
        return len(points)


def point_rows(trace_id: TraceId, points: Sequence[DecodedPoint]) -> list[dict]:
    """Convert decoded points to trace_point rows, with fixed-point coordinates."""
    return [
        {
            'trace_id': trace_id,
            'trackid': p.segment,
            'latitude': round(p.latitude * COORDINATE_SCALE),
            'longitude': round(p.longitude * COORDINATE_SCALE),
            'timestamp': p.timestamp,
            'altitude': p.altitude,
        }
        for p in points
    ]

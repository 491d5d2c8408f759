from sqlalchemy import func, select

from gpxtrace.db import db
from gpxtrace.models.db.trace_point import COORDINATE_SCALE, TracePoint
from gpxtrace.models.trace_bounds import TraceBounds
from gpxtrace.models.types import TraceId


class TracePointQuery:
    @staticmethod
    async def count_by_trace_id(trace_id: TraceId) -> int:
        """Count the stored points of a trace."""
        async with db() as session:
            stmt = select(func.count()).select_from(TracePoint).where(TracePoint.trace_id == trace_id)
            return await session.scalar(stmt) or 0

    @staticmethod
    async def get_bounds(trace_id: TraceId) -> TraceBounds | None:
        """
        Get the bounding box of the stored points of a trace.

        Returns None if the trace has no points.
        """
        async with db() as session:
            stmt = select(
                func.min(TracePoint.latitude),
                func.max(TracePoint.latitude),
                func.min(TracePoint.longitude),
                func.max(TracePoint.longitude),
            ).where(TracePoint.trace_id == trace_id)
            row = (await session.execute(stmt)).one()

        if row[0] is None:
            return None

        return TraceBounds(*(v / COORDINATE_SCALE for v in row))

    @staticmethod
    async def find_many_by_trace_id(trace_id: TraceId) -> list[TracePoint]:
        """Find the stored points of a trace, ordered by segment and time."""
        async with db() as session:
            stmt = (
                select(TracePoint)
                .where(TracePoint.trace_id == trace_id)
                .order_by(TracePoint.trackid, TracePoint.timestamp, TracePoint.id)
            )
            return list((await session.scalars(stmt)).all())

from sqlalchemy import select

from gpxtrace.db import db
from gpxtrace.lib.exceptions_context import raise_for
from gpxtrace.models.db.trace import Trace
from gpxtrace.models.types import TraceId


class TraceQuery:
    @staticmethod
    async def find_by_id(trace_id: TraceId) -> Trace | None:
        """Find a trace by id."""
        async with db() as session:
            return await session.get(Trace, trace_id)

    @staticmethod
    async def get_by_id(trace_id: TraceId) -> Trace:
        """
        Get a trace by id.
        Raises if the trace does not exist.
        """
        trace = await TraceQuery.find_by_id(trace_id)
        if trace is None:
            raise_for.trace_not_found(trace_id)
        return trace

    @staticmethod
    async def find_many_pending(limit: int) -> list[Trace]:
        """Find visible traces whose points were not imported yet, oldest first."""
        async with db() as session:
            stmt = (
                select(Trace)
                .where(Trace.visible, ~Trace.inserted)
                .order_by(Trace.id)
                .limit(limit)
            )
            return list((await session.scalars(stmt)).all())

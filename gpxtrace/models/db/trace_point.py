from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from gpxtrace.models.db.base import Base
from gpxtrace.models.types import TraceId

# coordinates are stored as fixed-point integers, exact in aggregates
COORDINATE_SCALE = 10_000_000


class TracePoint(Base.Sequential):
    __tablename__ = 'trace_point'

    trace_id: Mapped[TraceId] = mapped_column(
        ForeignKey('trace.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    trackid: Mapped[int] = mapped_column(Integer, nullable=False)
    latitude: Mapped[int] = mapped_column(Integer, nullable=False)
    longitude: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(True), nullable=False)
    altitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)

    @property
    def lat(self) -> float:
        return self.latitude / COORDINATE_SCALE

    @property
    def lon(self) -> float:
        return self.longitude / COORDINATE_SCALE

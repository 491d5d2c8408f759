from sqlalchemy import ForeignKey, Unicode
from sqlalchemy.orm import Mapped, mapped_column

from gpxtrace.config import TRACE_TAG_MAX_LENGTH
from gpxtrace.models.db.base import Base
from gpxtrace.models.types import TraceId


class TraceTag(Base.Sequential):
    __tablename__ = 'trace_tag'

    trace_id: Mapped[TraceId] = mapped_column(
        ForeignKey('trace.id', ondelete='CASCADE'),
        init=False,
        nullable=False,
        index=True,
    )
    tag: Mapped[str] = mapped_column(Unicode(TRACE_TAG_MAX_LENGTH), nullable=False)

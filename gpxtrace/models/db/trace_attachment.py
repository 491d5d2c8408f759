from typing import Literal, get_args

from sqlalchemy import BigInteger, Enum, ForeignKey, Unicode
from sqlalchemy.orm import Mapped, mapped_column

from gpxtrace.models.db.base import Base
from gpxtrace.models.types import StorageKey, TraceId

AttachmentName = Literal['file', 'image', 'icon']


class TraceAttachment(Base.NoID):
    """A blob attached to one of the named slots of a trace."""

    __tablename__ = 'trace_attachment'

    trace_id: Mapped[TraceId] = mapped_column(
        ForeignKey('trace.id', ondelete='CASCADE'),
        primary_key=True,
    )
    name: Mapped[AttachmentName] = mapped_column(
        Enum(*get_args(AttachmentName), name='trace_attachment_name'),
        primary_key=True,
    )
    key: Mapped[StorageKey] = mapped_column(Unicode(64), nullable=False)
    filename: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    content_type: Mapped[str] = mapped_column(Unicode(64), nullable=False)
    byte_size: Mapped[int] = mapped_column(BigInteger, nullable=False)

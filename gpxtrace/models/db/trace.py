from collections.abc import Iterable
from datetime import datetime
from typing import Literal, get_args

from sqlalchemy import Boolean, ColumnElement, DateTime, Enum, Float, Integer, Unicode
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gpxtrace.config import TRACE_TAG_MAX_LENGTH, TRACE_TAGS_LIMIT
from gpxtrace.lib.date_utils import utcnow
from gpxtrace.models.db.base import Base
from gpxtrace.models.db.trace_tag import TraceTag
from gpxtrace.models.types import UserId

TraceVisibility = Literal['identifiable', 'public', 'trackable', 'private']


class Trace(Base.Sequential):
    __tablename__ = 'trace'

    user_id: Mapped[UserId] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    description: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    visibility: Mapped[TraceVisibility] = mapped_column(
        Enum(*get_args(TraceVisibility), name='trace_visibility'),
        nullable=False,
    )

    # defaults
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(True),
        nullable=False,
        default_factory=utcnow,
    )
    visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    inserted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    size: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    tags: Mapped[list[TraceTag]] = relationship(
        default_factory=list,
        lazy='selectin',
        cascade='all, delete-orphan',
        order_by=TraceTag.id,
    )

    @property
    def tag_names(self) -> list[str]:
        return [t.tag for t in self.tags]

    def set_tags(self, names: Iterable[str]) -> None:
        """Replace the tag set; duplicates are removed, preserving order."""
        result: list[str] = []
        for name in names:
            name = name.strip()[:TRACE_TAG_MAX_LENGTH].strip()
            if name and name not in result:
                result.append(name)

        if len(result) > TRACE_TAGS_LIMIT:
            raise ValueError(f'Too many trace tags ({len(result)} > {TRACE_TAGS_LIMIT})')

        self.tags = [TraceTag(tag=name) for name in result]

    @property
    def tag_string(self) -> str:
        return ', '.join(self.tag_names)

    def set_tag_string(self, s: str) -> None:
        # a string without commas is split on whitespace, for backwards compatibility
        sep = ',' if ',' in s else None
        self.set_tags(s.split(sep))

    @hybrid_property
    def is_public(self) -> bool:
        return self.visibility in {'identifiable', 'public'}

    @is_public.inplace.expression
    @classmethod
    def _is_public(cls) -> ColumnElement[bool]:
        return cls.visibility.in_(('identifiable', 'public'))

    @hybrid_property
    def is_trackable(self) -> bool:
        return self.visibility in {'identifiable', 'trackable'}

    @is_trackable.inplace.expression
    @classmethod
    def _is_trackable(cls) -> ColumnElement[bool]:
        return cls.visibility.in_(('identifiable', 'trackable'))

    @hybrid_property
    def is_identifiable(self) -> bool:
        return self.visibility == 'identifiable'

    @is_identifiable.inplace.expression
    @classmethod
    def _is_identifiable(cls) -> ColumnElement[bool]:
        return cls.visibility == 'identifiable'

from sqlalchemy import LargeBinary, Unicode
from sqlalchemy.orm import Mapped, mapped_column

from gpxtrace.models.db.base import Base
from gpxtrace.models.types import StorageKey


class File(Base.NoID):
    """Blob of the database storage backend."""

    __tablename__ = 'file'

    context: Mapped[str] = mapped_column(Unicode(32), primary_key=True)
    key: Mapped[StorageKey] = mapped_column(Unicode(64), primary_key=True)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from io import BytesIO
from pathlib import PurePath

from sizestr import sizestr
from sqlalchemy import delete, select, update

from gpxtrace.db import db
from gpxtrace.lib.storage import get_storage
from gpxtrace.lib.storage.base import StorageBase
from gpxtrace.models.db.trace_attachment import AttachmentName, TraceAttachment
from gpxtrace.models.trace_config import TraceConfig
from gpxtrace.models.types import TraceId


class Attachment:
    """
    A named blob slot of a trace.

    The blob lives in a storage backend; the slot row records its key,
    file name and content type.
    """

    __slots__ = ('name', 'storage', 'trace_id')

    def __init__(self, trace_id: TraceId, name: AttachmentName, storage: StorageBase):
        self.trace_id = trace_id
        self.name = name
        self.storage = storage

    @classmethod
    def of(cls, trace_id: TraceId, name: AttachmentName, config: TraceConfig) -> 'Attachment':
        """Get the attachment slot with the storage backend configured for it."""
        url = {
            'file': config.file_storage_url,
            'image': config.image_storage_url,
            'icon': config.icon_storage_url,
        }[name]
        return cls(trace_id, name, get_storage(url))

    async def get(self) -> TraceAttachment | None:
        async with db() as session:
            stmt = select(TraceAttachment).where(
                TraceAttachment.trace_id == self.trace_id,
                TraceAttachment.name == self.name,
            )
            return await session.scalar(stmt)

    async def is_attached(self) -> bool:
        return (await self.get()) is not None

    async def attach(self, data: bytes, filename: str, content_type: str) -> None:
        """Store the data, replacing the previously attached blob."""
        previous = await self.get()
        key = await self.storage.save(data, PurePath(filename).suffix)

        async with db(True) as session:
            if previous is not None:
                await session.execute(_delete_stmt(self.trace_id, self.name))
            session.add(
                TraceAttachment(
                    trace_id=self.trace_id,
                    name=self.name,
                    key=key,
                    filename=filename,
                    content_type=content_type,
                    byte_size=len(data),
                )
            )

        if previous is not None:
            await self.storage.delete(previous.key)

        logging.debug('Attached %s %r to trace %d as %r', sizestr(len(data)), self.name, self.trace_id, filename)

    async def download(self) -> bytes:
        attachment = await self.get()
        if attachment is None:
            raise FileNotFoundError(f'Trace {self.trace_id} has no {self.name!r} attached')
        return await self.storage.load(attachment.key)

    @asynccontextmanager
    async def open_for_read(self) -> AsyncIterator[BytesIO]:
        with BytesIO(await self.download()) as f:
            yield f

    async def update_filename(self, filename: str) -> None:
        async with db(True) as session:
            stmt = (
                update(TraceAttachment)
                .where(
                    TraceAttachment.trace_id == self.trace_id,
                    TraceAttachment.name == self.name,
                )
                .values(filename=filename)
            )
            await session.execute(stmt)

    async def purge(self) -> None:
        """Delete the blob and its slot; a missing attachment is not an error."""
        attachment = await self.get()
        if attachment is None:
            return

        async with db(True) as session:
            await session.execute(_delete_stmt(self.trace_id, self.name))

        await self.storage.delete(attachment.key)
        logging.debug('Purged %r of trace %d', self.name, self.trace_id)


def _delete_stmt(trace_id: TraceId, name: AttachmentName):
    return delete(TraceAttachment).where(
        TraceAttachment.trace_id == trace_id,
        TraceAttachment.name == name,
    )

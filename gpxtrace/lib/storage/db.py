from typing import override

from sqlalchemy import delete, select

from gpxtrace.db import db
from gpxtrace.lib.storage.base import StorageBase, rand_storage_key
from gpxtrace.models.db.file import File
from gpxtrace.models.types import StorageKey


class DBStorage(StorageBase):
    """Database file storage."""

    __slots__ = ('_context',)

    def __init__(self, context: str):
        super().__init__()
        self._context = context

    @override
    async def load(self, key: StorageKey) -> bytes:
        async with db() as session:
            stmt = select(File.data).where(File.context == self._context, File.key == key)
            data = await session.scalar(stmt)

        if data is None:
            raise FileNotFoundError(f'File {key!r} not found in {self._context!r}')
        return data

    @override
    async def save(self, data: bytes, suffix: str) -> StorageKey:
        key = rand_storage_key(suffix)

        async with db(True) as session:
            session.add(File(context=self._context, key=key, data=data))

        return key

    @override
    async def delete(self, key: StorageKey) -> None:
        async with db(True) as session:
            stmt = delete(File).where(File.context == self._context, File.key == key)
            await session.execute(stmt)

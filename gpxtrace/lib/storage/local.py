from pathlib import Path
from typing import override

from anyio import to_thread

from gpxtrace.config import FILE_STORE_DIR
from gpxtrace.lib.storage.base import StorageBase, rand_storage_key
from gpxtrace.models.types import StorageKey


class LocalStorage(StorageBase):
    """Local file storage."""

    __slots__ = ('_base_dir',)

    def __init__(self, dirname: str):
        super().__init__()
        self._base_dir = FILE_STORE_DIR.joinpath(dirname)

    @override
    async def load(self, key: StorageKey) -> bytes:
        path = _get_path(self._base_dir, key)
        return await to_thread.run_sync(path.read_bytes)

    @override
    async def save(self, data: bytes, suffix: str) -> StorageKey:
        key = rand_storage_key(suffix)

        path = _get_path(self._base_dir, key)
        dir = path.parent
        dir.mkdir(parents=True, exist_ok=True)

        temp_path = dir.joinpath(f'.{path.name}.tmp')
        with temp_path.open('xb') as f:
            await to_thread.run_sync(f.write, data)
        temp_path.rename(path)

        return key

    @override
    async def delete(self, key: StorageKey) -> None:
        path = _get_path(self._base_dir, key)
        path.unlink(missing_ok=True)


def _get_path(base_dir: Path, key: StorageKey, /) -> Path:
    """Get the path to a file in the storage."""
    return base_dir.joinpath(key[:2], key[2:4], key) if len(key) > 4 else base_dir.joinpath(key)

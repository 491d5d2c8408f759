from functools import cache

from gpxtrace.lib.storage.base import StorageBase


@cache
def get_storage(url: str) -> StorageBase:
    """
    Parse a storage URL and return the appropriate storage implementation.

    Supported URL formats:
    - Database storage: "db://trace_file" -> DBStorage("trace_file")
    - Local directory: "file://trace_file" -> LocalStorage("trace_file")
    """
    scheme, sep, path = url.partition('://')
    path = path.rstrip('/')

    if sep and scheme == 'db':
        # Lazy import for faster startup
        from gpxtrace.lib.storage.db import DBStorage  # noqa: PLC0415

        return DBStorage(path)
    if sep and scheme == 'file':
        # Lazy import for faster startup
        from gpxtrace.lib.storage.local import LocalStorage  # noqa: PLC0415

        return LocalStorage(path)

    raise ValueError(f'Invalid storage URL: {url}')

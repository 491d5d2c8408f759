from abc import ABC, abstractmethod
from secrets import token_urlsafe

from gpxtrace.models.types import StorageKey


class StorageBase(ABC):
    __slots__ = ()

    @abstractmethod
    async def load(self, key: StorageKey) -> bytes:
        """Load a file from storage by key."""
        ...

    @abstractmethod
    async def save(self, data: bytes, suffix: str) -> StorageKey:
        """Save a file to storage and return its key."""
        ...

    @abstractmethod
    async def delete(self, key: StorageKey) -> None:
        """Delete a key from storage. Deleting a missing key is not an error."""
        ...


def rand_storage_key(suffix: str) -> StorageKey:
    """Generate a random storage key, ending with the given suffix."""
    return StorageKey(token_urlsafe(16) + suffix)

"""Key-value blob store interface."""

from typing import Protocol


class BlobStore(Protocol):
    """Stores one opaque document per key.

    ``read`` returns None for a key that was never written; that is the
    normal state on a first run, not an error.
    """

    async def read(self, key: str) -> bytes | None: ...

    async def write(self, key: str, data: bytes) -> None: ...


class MemoryBlobStore:
    """In-process blob store for tests and local runs."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.blobs: dict[str, bytes] = dict(initial or {})
        self.writes: list[str] = []

    async def read(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    async def write(self, key: str, data: bytes) -> None:
        self.blobs[key] = data
        self.writes.append(key)


__all__ = ["BlobStore", "MemoryBlobStore"]

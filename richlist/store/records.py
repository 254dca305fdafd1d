"""Typed access to the rich list records kept in a blob store."""

from pydantic import ValidationError

from richlist.helpers.constants import DEFAULT_KEY_PREFIX
from richlist.helpers.errors import StoreError
from richlist.helpers.logging import get_logger
from richlist.store.blob import BlobStore
from richlist.store.models import LastHeightRecord, Snapshot


logger = get_logger(__name__)


class RichListStore:
    """Reads and writes the last-height pointer and the top snapshot.

    Each record is a JSON document under its own key. There is no
    cross-key transaction; callers write the snapshot before the height.
    """

    def __init__(self, blobs: BlobStore, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self.blobs = blobs
        self.last_height_key = f"{key_prefix}-lastheight.json"
        self.top_key = f"{key_prefix}-top.json"

    async def _write(self, key: str, payload: bytes) -> None:
        logger.debug("Writing %s (%d bytes)", key, len(payload))
        try:
            await self.blobs.write(key, payload)
        except StoreError:
            logger.error("Error writing %s", key)
            raise
        except Exception as e:
            msg = f"Error writing {key}: {e}"
            raise StoreError(msg) from e

    async def get_last_height(self) -> int | None:
        """Height of the last completed refresh, or None before the first one.

        Raises:
            StoreError: If the record exists but is unreadable
        """
        raw = await self.blobs.read(self.last_height_key)
        if raw is None:
            logger.info("%s not found (created on first refresh)", self.last_height_key)
            return None
        try:
            return LastHeightRecord.model_validate_json(raw).height
        except ValidationError as e:
            msg = f"Corrupt last height record: {e}"
            raise StoreError(msg) from e

    async def set_last_height(self, height: int) -> None:
        """Advance the last-height pointer."""
        await self._write(
            self.last_height_key,
            LastHeightRecord(height=height).model_dump_json().encode(),
        )

    async def get_snapshot(self) -> Snapshot | None:
        """Current snapshot, or None if none was written or it is unreadable."""
        raw = await self.blobs.read(self.top_key)
        if raw is None:
            logger.info("%s not found (created on first refresh)", self.top_key)
            return None
        try:
            return Snapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Ignoring unreadable snapshot %s: %s", self.top_key, e)
            return None

    async def set_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the current snapshot."""
        await self._write(self.top_key, snapshot.model_dump_json().encode())


__all__ = ["RichListStore"]

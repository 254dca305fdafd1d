"""Wiring of settings, explorer, store and controller."""

import asyncio
from types import TracebackType
from typing import Self

from richlist.balances.fetcher import fetch_balances_batch
from richlist.balances.models import BalanceRecord
from richlist.explorer.client import ExplorerClient
from richlist.helpers.config import RichListSettings
from richlist.helpers.constants import DEFAULT_API_CONCURRENCY
from richlist.helpers.logging import get_logger
from richlist.refresh.controller import Explorer, RefreshController
from richlist.refresh.labels import load_labels
from richlist.refresh.models import RefreshResult
from richlist.store.blob import BlobStore
from richlist.store.db import DatabaseBlobStore
from richlist.store.models import Snapshot
from richlist.store.records import RichListStore


logger = get_logger(__name__)


class RichListService:
    """Entry point shared by the HTTP API and the command line.

    Explorer and blob store can be injected; otherwise they are built from
    settings on first use, so a missing credential only fails the
    operations that need it.
    """

    def __init__(
        self,
        settings: RichListSettings,
        explorer: Explorer | None = None,
        blobs: BlobStore | None = None,
    ) -> None:
        self.settings = settings
        self._explorer = explorer
        self._blobs = blobs
        self._owned_explorer: ExplorerClient | None = None
        self._owned_blobs: DatabaseBlobStore | None = None
        self._labels: dict[str, str] | None = None
        self._store_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the clients this service created."""
        if self._owned_explorer is not None:
            await self._owned_explorer.aclose()
            self._owned_explorer = None
        if self._owned_blobs is not None:
            await self._owned_blobs.dispose()
            self._owned_blobs = None

    @property
    def explorer(self) -> Explorer:
        """Explorer client.

        Raises:
            ConfigurationError: If BLOCKBOOK_URL is not configured
        """
        if self._explorer is None:
            self._owned_explorer = ExplorerClient(
                self.settings.require_blockbook_url(), timeout=self.settings.http_timeout
            )
            self._explorer = self._owned_explorer
        return self._explorer

    async def store(self) -> RichListStore:
        """Record store.

        Raises:
            ConfigurationError: If no storage credential is configured
        """
        async with self._store_lock:
            if self._blobs is None:
                blobs = DatabaseBlobStore.from_url(self.settings.require_database_url())
                await blobs.create_tables()
                self._owned_blobs = blobs
                self._blobs = blobs
        return RichListStore(self._blobs, self.settings.key_prefix)

    @property
    def labels(self) -> dict[str, str]:
        if self._labels is None:
            self._labels = load_labels(self.settings.labels_file)
        return self._labels

    async def get_height(self) -> int:
        """Current best chain height."""
        return await self.explorer.get_best_height()

    async def get_balances(
        self, addresses: list[str], concurrency: int = DEFAULT_API_CONCURRENCY
    ) -> list[BalanceRecord]:
        """Balances of arbitrary addresses, in input order."""
        return await fetch_balances_batch(self.explorer, addresses, concurrency)

    async def get_snapshot(self) -> Snapshot | None:
        """Current snapshot, or None before the first refresh."""
        return await (await self.store()).get_snapshot()

    async def refresh(self) -> RefreshResult:
        """Run one refresh cycle.

        Raises:
            ConfigurationError: If storage or explorer settings are missing
        """
        controller = RefreshController(
            self.settings, self.explorer, await self.store(), self.labels
        )
        return await controller.run()


__all__ = ["RichListService"]

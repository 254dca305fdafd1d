"""Incremental rich list refresh.

One call to ``RefreshController.run`` is one refresh cycle:

1. Determine the chain height, either by probing the block after the last
   processed one (proactive) or by asking for the best height (traditional).
   An unchanged or lower height ends the cycle without writing anything.
2. Select addresses. Far behind (catch-up), only the top of the previous
   snapshot is re-checked; otherwise the newest blocks are scanned and the
   significant addresses found there are merged with the previous top.
3. Fetch balances for the selected addresses with a bounded worker pool.
4. Rank, truncate to top-N, write the snapshot and then the height pointer.

The cycle has a soft time budget checked between phases. Under pressure it
shrinks the work left to do instead of interrupting calls in flight.
"""

import time
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from typing import Protocol

from richlist.balances.fetcher import fetch_balances_batch
from richlist.balances.models import BalanceRecord
from richlist.explorer.models import BlockResponse
from richlist.helpers.config import RichListSettings
from richlist.helpers.constants import (
    CATCH_UP_ADDRESS_LIMIT,
    EMERGENCY_ADDRESS_LIMIT,
    PRIORITY_ADDRESS_LIMIT,
)
from richlist.helpers.errors import BlockNotFoundError, ConfigurationError
from richlist.helpers.logging import get_logger
from richlist.helpers.parsers import format_sats, sats_to_coin
from richlist.refresh.models import RefreshMode, RefreshResult, RefreshState
from richlist.scanner.discovery import discover_addresses
from richlist.store.models import Snapshot, TopEntry
from richlist.store.records import RichListStore


logger = get_logger(__name__)


class Explorer(Protocol):
    """Explorer operations used by a refresh cycle."""

    async def get_best_height(self) -> int: ...

    async def get_block(self, height: int) -> BlockResponse: ...

    async def get_address_balance(self, address: str) -> int: ...


def merge_addresses(*groups: Iterable[str]) -> list[str]:
    """Concatenate address groups, dropping repeats but keeping first positions.

    Example:
        >>> merge_addresses(["A", "B"], ["C", "A"])
        ['A', 'B', 'C']
    """
    return list(dict.fromkeys(address for group in groups for address in group))


def rank_entries(
    records: Sequence[BalanceRecord],
    top_n: int,
    updated_at: str,
    labels: dict[str, str] | None = None,
) -> list[TopEntry]:
    """Turn balance records into the top-N ranked entries.

    Sorting is stable, so equal balances keep their input order. Only the
    first record of a repeated address is kept.
    """
    labels = labels or {}
    unique: dict[str, BalanceRecord] = {}
    for record in records:
        unique.setdefault(record.address, record)

    ranked = sorted(unique.values(), key=lambda r: r.balance_sat, reverse=True)
    return [
        TopEntry(
            address=record.address,
            balance_sat=record.balance_sat,
            balance=format_sats(record.balance_sat),
            updated_at=updated_at,
            label=labels.get(record.address),
        )
        for record in ranked[:top_n]
    ]


class RefreshController:
    """Runs refresh cycles against an explorer and a rich list store."""

    def __init__(
        self,
        settings: RichListSettings,
        explorer: Explorer,
        store: RichListStore | None,
        labels: dict[str, str] | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        """Initialize the controller.

        Args:
            settings: Rich list settings
            explorer: Explorer client
            store: Record store; None when no storage credential is configured
            labels: Address to label mapping
            clock: Monotonic clock used for the time budget
            now: Wall clock used for snapshot timestamps
        """
        self.settings = settings
        self.explorer = explorer
        self.store = store
        self.labels = labels or {}
        self.clock = clock
        self.now = now
        self.state = RefreshState.IDLE
        self._started = 0.0

    def _enter(self, state: RefreshState) -> None:
        logger.debug("Refresh state: %s -> %s", self.state, state)
        self.state = state

    def _elapsed(self) -> float:
        return self.clock() - self._started

    def _remaining_below(self, buffer: float) -> bool:
        """Whether less than ``buffer`` seconds of the budget remain."""
        return self._elapsed() > self.settings.max_processing_time - buffer

    async def _best_height(self) -> int:
        height = await self.explorer.get_best_height()
        logger.info("Current blockchain height: %d", height)
        return height

    async def determine_height(self, last: int | None) -> tuple[int, RefreshMode]:
        """Find the height this cycle should reach.

        Args:
            last: Height of the last completed cycle

        Returns:
            Tuple of (height, mode used to find it)

        Raises:
            UpstreamError: If the best height query fails
        """
        if not (self.settings.proactive_mode and last is not None):
            return await self._best_height(), RefreshMode.TRADITIONAL

        next_expected = last + 1
        logger.info("Proactive mode: trying block %d...", next_expected)
        try:
            await self.explorer.get_block(next_expected)
        except BlockNotFoundError:
            logger.info("Block %d not found yet, checking current height", next_expected)
            return await self._best_height(), RefreshMode.PROACTIVE
        except Exception as e:
            logger.warning("Proactive fetch failed, falling back to height check: %s", e)
            return await self._best_height(), RefreshMode.FALLBACK

        logger.info("Block %d found proactively", next_expected)
        return next_expected, RefreshMode.PROACTIVE

    async def select_addresses(
        self, last: int | None, height: int, previous: Sequence[str]
    ) -> tuple[list[str], int, bool]:
        """Choose the addresses whose balances this cycle will fetch.

        Args:
            last: Height of the last completed cycle
            height: Height this cycle reaches
            previous: Addresses of the previous snapshot, in rank order

        Returns:
            Tuple of (addresses, number of newly discovered addresses,
            whether catch-up mode was used)
        """
        block_gap = height - last if last is not None else 0
        catch_up = block_gap > self.settings.catch_up_threshold
        logger.info("Block gap: %d, catch-up mode: %s", block_gap, catch_up)

        discovered: list[str] = []
        if catch_up:
            logger.info(
                "Catch-up mode: skipping block scan, using top %d addresses only",
                CATCH_UP_ADDRESS_LIMIT,
            )
            addresses = list(previous[:CATCH_UP_ADDRESS_LIMIT])
        else:
            if self._remaining_below(self.settings.scan_time_buffer):
                logger.warning("Approaching timeout, skipping block scanning")
            else:
                try:
                    discovered = await discover_addresses(
                        self.explorer,
                        last,
                        height,
                        self.settings.min_balance,
                        self.settings.discovery_max_blocks,
                    )
                except Exception as e:
                    logger.error("Block scanning failed: %s", e)
            addresses = merge_addresses(previous[:PRIORITY_ADDRESS_LIMIT], discovered)

        logger.info(
            "Addresses to check: %d (%d previous, %d discovered)",
            len(addresses),
            len(previous),
            len(discovered),
        )

        if self._remaining_below(self.settings.fetch_time_buffer):
            logger.warning(
                "Approaching timeout, using minimal address set (%d)",
                EMERGENCY_ADDRESS_LIMIT,
            )
            addresses = addresses[:EMERGENCY_ADDRESS_LIMIT]

        return addresses, len(discovered), catch_up

    async def run(self) -> RefreshResult:
        """Run one refresh cycle.

        Returns:
            Metrics of the cycle; ``skipped`` is set when the chain has not
            advanced past the last processed height

        Raises:
            ConfigurationError: If no store is configured
            UpstreamError: If the chain height cannot be determined
            StoreError: If a record cannot be read or written
        """
        self._started = self.clock()
        self.state = RefreshState.IDLE
        try:
            return await self._run()
        except Exception:
            self._enter(RefreshState.ERROR)
            raise

    async def _run(self) -> RefreshResult:
        settings = self.settings
        logger.info(
            "Starting refresh (top %d, min balance %s, proactive %s, catch-up threshold %d)",
            settings.top_n,
            format_sats(settings.min_balance),
            settings.proactive_mode,
            settings.catch_up_threshold,
        )

        if self.store is None:
            msg = "Storage credential is not configured"
            raise ConfigurationError(msg)
        store = self.store

        self._enter(RefreshState.DETERMINING_HEIGHT)
        last = await store.get_last_height()
        logger.info("Last processed height: %s", last)

        height, height_mode = await self.determine_height(last)
        if last is not None and height <= last:
            logger.info("No new blocks (height %d), skipping", height)
            self._enter(RefreshState.DONE)
            return RefreshResult(
                skipped=True,
                reason=f"No new blocks (height {height})",
                mode=height_mode,
                height=height,
                last_height=last,
                processing_time_seconds=round(self._elapsed(), 1),
            )

        self._enter(RefreshState.SELECTING_ADDRESSES)
        previous_snapshot = await store.get_snapshot()
        previous = previous_snapshot.addresses if previous_snapshot else []
        logger.info("Previously tracked addresses: %d", len(previous))
        addresses, discovered, catch_up = await self.select_addresses(
            last, height, previous
        )

        self._enter(RefreshState.FETCHING_BALANCES)
        records = await fetch_balances_batch(
            self.explorer, addresses, settings.refresh_concurrency
        )

        self._enter(RefreshState.PERSISTING)
        updated_at = self.now().isoformat()
        entries = rank_entries(records, settings.top_n, updated_at, self.labels)
        if entries:
            logger.info("Top entry balance: %s", entries[0].balance)

        # Snapshot first: a height pointer must never run ahead of its data
        await store.set_snapshot(
            Snapshot(height=height, updated_at=updated_at, entries=entries)
        )
        await store.set_last_height(height)

        self._enter(RefreshState.DONE)
        elapsed = self._elapsed()
        logger.info("Refresh complete in %.1fs", elapsed)

        return RefreshResult(
            updated=True,
            mode=RefreshMode.CATCH_UP if catch_up else height_mode,
            height=height,
            last_height=last,
            count=len(entries),
            total_addresses_checked=len(addresses),
            new_addresses_discovered=discovered,
            block_gap=height - last if last is not None else 0,
            catch_up_mode=catch_up,
            processing_time_seconds=round(elapsed, 1),
            min_balance_required=sats_to_coin(settings.min_balance),
        )


__all__ = [
    "Explorer",
    "RefreshController",
    "merge_addresses",
    "rank_entries",
]

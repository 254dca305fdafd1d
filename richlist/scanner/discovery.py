"""Discover newly active addresses with significant balances."""

import asyncio
from typing import Protocol

from richlist.balances.fetcher import fetch_balance
from richlist.balances.models import BalanceRecord
from richlist.explorer.models import BlockResponse
from richlist.helpers.constants import DISCOVERY_BATCH_SIZE
from richlist.helpers.http import log_and_suppress_errors
from richlist.helpers.logging import get_logger
from richlist.helpers.parsers import format_sats
from richlist.scanner.blocks import scan_block_addresses


logger = get_logger(__name__)


class DiscoverySource(Protocol):
    """Explorer operations used during discovery."""

    async def get_block(self, height: int) -> BlockResponse: ...

    async def get_address_balance(self, address: str) -> int: ...


def scan_window(
    last_height: int | None, current_height: int, max_blocks: int
) -> range:
    """Heights to scan for a refresh from ``last_height`` to ``current_height``.

    The window never holds more than ``max_blocks`` heights, however far
    behind ``last_height`` is. On a cold start only ``current_height`` is
    scanned.

    Example:
        >>> scan_window(100, 200, 5)
        range(196, 201)
        >>> scan_window(None, 200, 5)
        range(200, 201)
    """
    lower = last_height + 1 if last_height is not None else current_height
    start = max(lower, current_height - max_blocks + 1)
    return range(start, current_height + 1)


async def _checked_balance(
    explorer: DiscoverySource, address: str
) -> BalanceRecord | None:
    """Balance of a discovered address, or None if the lookup failed."""
    try:
        return await fetch_balance(explorer, address)
    except Exception as e:
        logger.warning("Balance check failed for %s: %s", address, e)
        return None


async def discover_addresses(
    explorer: DiscoverySource,
    last_height: int | None,
    current_height: int,
    min_balance: int,
    max_blocks: int,
) -> list[str]:
    """Scan recent blocks and keep addresses holding at least ``min_balance``.

    Args:
        explorer: Explorer client
        last_height: Height of the last completed refresh, None on cold start
        current_height: Current chain height
        min_balance: Minimum balance in sats
        max_blocks: Maximum number of blocks to scan

    Returns:
        Addresses with balance >= min_balance, in first-seen order;
        addresses whose lookup failed are left out
    """
    window = scan_window(last_height, current_height, max_blocks)
    if not window:
        logger.info("Empty scan window (last %s, current %d)", last_height, current_height)
        return []

    logger.info("Discovering addresses from blocks %d to %d", window.start, window[-1])

    # dict keeps first-seen order across blocks
    found: dict[str, None] = {}
    for height in window:
        async with log_and_suppress_errors(f"Scanning block {height}"):
            for address in sorted(await scan_block_addresses(explorer, height)):
                found.setdefault(address, None)

    candidates = list(found)
    logger.info(
        "Checking balances for %d addresses in %d blocks (min: %s)",
        len(candidates),
        len(window),
        format_sats(min_balance),
    )

    significant: list[str] = []
    for start in range(0, len(candidates), DISCOVERY_BATCH_SIZE):
        batch = candidates[start : start + DISCOVERY_BATCH_SIZE]
        records = await asyncio.gather(
            *(_checked_balance(explorer, address) for address in batch)
        )
        for record in records:
            if record is not None and record.balance_sat >= min_balance:
                logger.info(
                    "Found significant balance: %s = %s",
                    record.address,
                    format_sats(record.balance_sat),
                )
                significant.append(record.address)
        logger.debug(
            "Progress: %d/%d checked",
            min(start + DISCOVERY_BATCH_SIZE, len(candidates)),
            len(candidates),
        )

    logger.info("Discovered %d addresses with significant balances", len(significant))
    return significant


__all__ = ["DiscoverySource", "discover_addresses", "scan_window"]

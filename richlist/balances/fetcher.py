"""Bounded-concurrency balance lookups against the explorer."""

import asyncio
from collections.abc import Sequence
from typing import Protocol

from rich.progress import Progress, TaskID

from richlist.balances.models import BalanceRecord
from richlist.helpers.constants import PROGRESS_LOG_INTERVAL
from richlist.helpers.logging import get_logger
from richlist.helpers.parsers import format_sats


logger = get_logger(__name__)


class BalanceSource(Protocol):
    """Anything that can look up the balance of one address."""

    async def get_address_balance(self, address: str) -> int: ...


async def fetch_balance(explorer: BalanceSource, address: str) -> BalanceRecord:
    """Fetch the balance of a single address.

    Args:
        explorer: Explorer client
        address: Address to look up

    Returns:
        BalanceRecord for the address

    Raises:
        UpstreamError: If the explorer call fails or cannot be parsed
    """
    balance_sat = await explorer.get_address_balance(address)
    return BalanceRecord(address=address, balance_sat=balance_sat)


async def fetch_balances_batch(
    explorer: BalanceSource,
    addresses: Sequence[str],
    concurrency: int,
    *,
    progress: Progress | None = None,
    task_id: TaskID | None = None,
) -> list[BalanceRecord]:
    """Fetch balances for many addresses with a fixed-size worker pool.

    ``min(concurrency, len(addresses))`` workers claim indices from a shared
    cursor. Result slot ``i`` always belongs to ``addresses[i]``. A failed
    lookup is recorded as a zero balance and never aborts the batch; nothing
    is retried.

    Args:
        explorer: Explorer client
        addresses: Addresses to look up
        concurrency: Maximum number of concurrent lookups
        progress: Optional rich progress bar to advance per address
        task_id: Task of ``progress`` to advance

    Returns:
        One BalanceRecord per input address, in input order

    Raises:
        ValueError: If concurrency is lower than 1

    Example:
        ```python
        async with ExplorerClient(url) as explorer:
            records = await fetch_balances_batch(explorer, ["M9x...", "MLk..."], 8)
        ```
    """
    if concurrency < 1:
        msg = f"concurrency must be >= 1, got {concurrency}"
        raise ValueError(msg)

    total = len(addresses)
    if total == 0:
        return []

    logger.info(
        "Fetching balances for %d addresses (concurrency: %d)", total, concurrency
    )

    results: list[BalanceRecord | None] = [None] * total
    cursor = 0
    completed = 0
    lock = asyncio.Lock()

    async def claim() -> int | None:
        nonlocal cursor
        async with lock:
            if cursor >= total:
                return None
            idx = cursor
            cursor += 1
            return idx

    async def worker() -> None:
        nonlocal completed
        while (idx := await claim()) is not None:
            address = addresses[idx]
            try:
                record = await fetch_balance(explorer, address)
            except Exception as e:
                logger.error("Failed %s: %s", address, e)
                record = BalanceRecord(address=address, balance_sat=0)

            results[idx] = record
            completed += 1
            if completed % PROGRESS_LOG_INTERVAL == 0 or record.balance_sat > 0:
                logger.debug(
                    "Progress: %d/%d - %s: %s",
                    completed,
                    total,
                    address,
                    format_sats(record.balance_sat),
                )
            if progress is not None and task_id is not None:
                progress.update(task_id, advance=1)

    workers = min(concurrency, total)
    await asyncio.gather(*(worker() for _ in range(workers)))

    records = [record for record in results if record is not None]
    total_balance = sum(record.balance_sat for record in records)
    logger.info("Batch complete: %s total", format_sats(total_balance))
    return records


__all__ = ["BalanceSource", "fetch_balance", "fetch_balances_batch"]

"""Extract candidate addresses from blocks."""

from typing import Protocol

from richlist.explorer.models import BlockResponse
from richlist.helpers.constants import MIN_ADDRESS_LENGTH, NON_SPENDABLE_PREFIX
from richlist.helpers.http import handle_http_errors
from richlist.helpers.logging import get_logger


logger = get_logger(__name__)


class BlockSource(Protocol):
    """Anything that can fetch a block by height."""

    async def get_block(self, height: int) -> BlockResponse: ...


def is_candidate_address(token: str | None) -> bool:
    """Check whether a token from block data looks like a spendable address.

    Example:
        >>> is_candidate_address("OP_RETURN 6a24aa21a9ed")
        False
        >>> is_candidate_address("MJ5xQ4G6zA3eHR8sQeB9h1SxR4Yq6rU2hB")
        True
    """
    return (
        bool(token)
        and not token.startswith(NON_SPENDABLE_PREFIX)
        and len(token) >= MIN_ADDRESS_LENGTH
    )


def extract_block_addresses(block: BlockResponse) -> set[str]:
    """Collect the input and output addresses of every transaction in a block.

    Args:
        block: Decoded block

    Returns:
        Set of unique candidate addresses
    """
    addresses: set[str] = set()
    for tx in block.txs:
        for endpoint in (*tx.vin, *tx.vout):
            for token in endpoint.addresses or []:
                if is_candidate_address(token):
                    addresses.add(token)
    return addresses


async def scan_block_addresses(explorer: BlockSource, height: int) -> set[str]:
    """Fetch a block and return its candidate addresses.

    Never raises: a missing block or any fetch or parse failure yields an
    empty set.

    Args:
        explorer: Explorer client
        height: Block height

    Returns:
        Set of unique candidate addresses, empty on failure
    """

    @handle_http_errors(default_return=None)
    async def fetch() -> set[str]:
        logger.debug("Fetching block %d...", height)
        return extract_block_addresses(await explorer.get_block(height))

    addresses = await fetch()
    if addresses is None:
        logger.warning("Failed to scan block %d", height)
        return set()

    logger.debug("Found %d unique addresses in block %d", len(addresses), height)
    return addresses


__all__ = [
    "BlockSource",
    "extract_block_addresses",
    "is_candidate_address",
    "scan_block_addresses",
]

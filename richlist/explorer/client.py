"""Blockbook explorer API client."""

from types import TracebackType
from typing import Any, Self, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from richlist.explorer.models import AddressResponse, BlockResponse, StatusResponse
from richlist.helpers.constants import DEFAULT_TIMEOUT
from richlist.helpers.errors import BlockNotFoundError, UpstreamError
from richlist.helpers.http import cache_bust_params, create_http_client
from richlist.helpers.logging import get_logger
from richlist.helpers.parsers import parse_balance_sats


logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ExplorerClient:
    """Client for the subset of the Blockbook API the rich list needs.

    No responses are cached: every request carries a cache-busting query
    parameter and no-cache headers.
    """

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize explorer client.

        Args:
            base_url: Blockbook base URL (e.g. "https://blockbook.example")
            http_client: Shared HTTP client; one is created if omitted
            timeout: Per-request timeout when creating the HTTP client

        Raises:
            ValueError: If base_url is empty or None
        """
        if not base_url:
            msg = "Explorer URL cannot be empty"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = http_client is None
        self.http_client = http_client or create_http_client(timeout=timeout)

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
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def _get(
        self, path: str, model: type[ModelT], params: dict[str, str] | None = None
    ) -> ModelT:
        """GET a path and decode the body into ``model``.

        Raises:
            UpstreamError: On transport failure, non-2xx status or invalid body
        """
        url = f"{self.base_url}{path}"
        try:
            response = await self.http_client.get(url, params=cache_bust_params(params))
        except httpx.HTTPError as e:
            msg = f"Request to {path} failed: {e}"
            raise UpstreamError(msg) from e

        if not response.is_success:
            msg = f"{path} failed: {response.status_code}"
            raise UpstreamError(msg, status_code=response.status_code)

        try:
            payload: Any = response.json()
            return model.model_validate(payload)
        except (ValueError, ValidationError) as e:
            msg = f"Invalid response from {path}: {e}"
            raise UpstreamError(msg, status_code=response.status_code) from e

    async def get_best_height(self) -> int:
        """Get the best chain height.

        Returns:
            Best block height

        Raises:
            UpstreamError: If the request fails or no height can be parsed
        """
        logger.debug("Fetching best height from %s", self.base_url)
        status = await self._get("/api/", StatusResponse)

        height = status.height
        if height <= 0:
            msg = "Failed to parse height from Blockbook API response"
            raise UpstreamError(msg)

        logger.debug("Best height: %d", height)
        return height

    async def get_block(self, height: int) -> BlockResponse:
        """Get a block with its transactions.

        Args:
            height: Block height

        Returns:
            Decoded block

        Raises:
            BlockNotFoundError: If the block does not exist yet
            UpstreamError: If the request fails for any other reason
        """
        try:
            return await self._get(f"/api/v2/block/{height}", BlockResponse)
        except UpstreamError as e:
            if e.status_code == 404:
                raise BlockNotFoundError(height) from e
            raise

    async def get_address(self, address: str) -> AddressResponse:
        """Get the basic details of an address.

        Raises:
            UpstreamError: If the request fails or the body is invalid
        """
        return await self._get(
            f"/api/v2/address/{address}", AddressResponse, {"details": "basic"}
        )

    async def get_address_balance(self, address: str) -> int:
        """Get the confirmed balance of an address in sats.

        Raises:
            UpstreamError: If the request fails or the body is invalid
        """
        details = await self.get_address(address)
        return parse_balance_sats(details.balance)


__all__ = ["ExplorerClient"]

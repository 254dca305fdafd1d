"""Tests for the Blockbook explorer client."""

import re

from typing import TYPE_CHECKING

import httpx
import pytest

from richlist.explorer.client import ExplorerClient
from richlist.helpers.errors import BlockNotFoundError, UpstreamError


if TYPE_CHECKING:
    from pytest_httpx import HTTPXMock


BASE = "https://blockbook.test"
STATUS_URL = re.compile(r"https://blockbook\.test/api/\?_cb=\d+$")
ADDRESS = "MJ5xQ4G6zA3eHR8sQeB9h1SxR4Yq6rU2hB"


def block_url(height: int) -> re.Pattern[str]:
    return re.compile(rf"https://blockbook\.test/api/v2/block/{height}\?_cb=\d+$")


ADDRESS_URL = re.compile(
    rf"https://blockbook\.test/api/v2/address/{ADDRESS}\?details=basic&_cb=\d+$"
)


class TestExplorerClientInit:
    """Tests for ExplorerClient construction."""

    def test_empty_url_raises(self) -> None:
        """Test that an empty URL raises ValueError."""
        with pytest.raises(ValueError, match="Explorer URL cannot be empty"):
            ExplorerClient("")

    @pytest.mark.asyncio
    async def test_trailing_slash_stripped(self) -> None:
        """Test the base URL is normalized."""
        async with ExplorerClient(f"{BASE}/") as explorer:
            assert explorer.base_url == BASE

    @pytest.mark.asyncio
    async def test_shared_client_is_not_closed(self) -> None:
        """Test an injected HTTP client stays open after aclose."""
        async with httpx.AsyncClient() as http_client:
            explorer = ExplorerClient(BASE, http_client=http_client)
            await explorer.aclose()

            assert not http_client.is_closed


class TestGetBestHeight:
    """Tests for get_best_height."""

    @pytest.mark.asyncio
    async def test_blockbook_best_height(self, httpx_mock: "HTTPXMock") -> None:
        """Test the indexer height is preferred."""
        httpx_mock.add_response(
            url=STATUS_URL,
            json={"blockbook": {"bestHeight": 1234}, "backend": {"blocks": 1235}},
        )

        async with ExplorerClient(BASE) as explorer:
            assert await explorer.get_best_height() == 1234

    @pytest.mark.asyncio
    async def test_backend_blocks_fallback(self, httpx_mock: "HTTPXMock") -> None:
        """Test backend.blocks is used when bestHeight is missing."""
        httpx_mock.add_response(url=STATUS_URL, json={"backend": {"blocks": 999}})

        async with ExplorerClient(BASE) as explorer:
            assert await explorer.get_best_height() == 999

    @pytest.mark.asyncio
    async def test_sends_no_cache_headers(self, httpx_mock: "HTTPXMock") -> None:
        """Test requests carry no-cache directives."""
        httpx_mock.add_response(url=STATUS_URL, json={"blockbook": {"bestHeight": 1}})

        async with ExplorerClient(BASE) as explorer:
            await explorer.get_best_height()

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
        assert request.headers["Pragma"] == "no-cache"

    @pytest.mark.asyncio
    async def test_unparseable_height_raises(self, httpx_mock: "HTTPXMock") -> None:
        """Test a status document without a height raises UpstreamError."""
        httpx_mock.add_response(url=STATUS_URL, json={"blockbook": {}})

        async with ExplorerClient(BASE) as explorer:
            with pytest.raises(UpstreamError, match="Failed to parse height"):
                await explorer.get_best_height()

    @pytest.mark.asyncio
    async def test_server_error_raises(self, httpx_mock: "HTTPXMock") -> None:
        """Test a 5xx raises UpstreamError carrying the status code."""
        httpx_mock.add_response(url=STATUS_URL, status_code=503)

        async with ExplorerClient(BASE) as explorer:
            with pytest.raises(UpstreamError) as exc_info:
                await explorer.get_best_height()

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, httpx_mock: "HTTPXMock") -> None:
        """Test a non-JSON body raises UpstreamError."""
        httpx_mock.add_response(url=STATUS_URL, text="<html>oops</html>")

        async with ExplorerClient(BASE) as explorer:
            with pytest.raises(UpstreamError, match="Invalid response"):
                await explorer.get_best_height()

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, httpx_mock: "HTTPXMock") -> None:
        """Test a connection failure raises UpstreamError."""
        httpx_mock.add_exception(httpx.ConnectError("refused"), url=STATUS_URL)

        async with ExplorerClient(BASE) as explorer:
            with pytest.raises(UpstreamError, match="refused"):
                await explorer.get_best_height()


class TestGetBlock:
    """Tests for get_block."""

    @pytest.mark.asyncio
    async def test_decodes_transactions(self, httpx_mock: "HTTPXMock") -> None:
        """Test a block response is decoded into transactions."""
        httpx_mock.add_response(
            url=block_url(101),
            json={
                "height": 101,
                "txs": [
                    {
                        "txid": "aa",
                        "vin": [{"addresses": [ADDRESS], "isAddress": True}],
                        "vout": [{"addresses": ["OP_RETURN 00"]}, {"value": "1"}],
                    }
                ],
            },
        )

        async with ExplorerClient(BASE) as explorer:
            block = await explorer.get_block(101)

        assert block.height == 101
        assert block.txs[0].vin[0].addresses == [ADDRESS]
        assert block.txs[0].vout[1].addresses is None

    @pytest.mark.asyncio
    async def test_not_found(self, httpx_mock: "HTTPXMock") -> None:
        """Test a 404 raises BlockNotFoundError."""
        httpx_mock.add_response(url=block_url(102), status_code=404)

        async with ExplorerClient(BASE) as explorer:
            with pytest.raises(BlockNotFoundError) as exc_info:
                await explorer.get_block(102)

        assert exc_info.value.height == 102

    @pytest.mark.asyncio
    async def test_other_error_is_not_not_found(self, httpx_mock: "HTTPXMock") -> None:
        """Test non-404 failures raise a plain UpstreamError."""
        httpx_mock.add_response(url=block_url(103), status_code=500)

        async with ExplorerClient(BASE) as explorer:
            with pytest.raises(UpstreamError) as exc_info:
                await explorer.get_block(103)

        assert not isinstance(exc_info.value, BlockNotFoundError)


class TestGetAddressBalance:
    """Tests for get_address_balance."""

    @pytest.mark.asyncio
    async def test_parses_balance_string(self, httpx_mock: "HTTPXMock") -> None:
        """Test the balance string is parsed as sats."""
        httpx_mock.add_response(
            url=ADDRESS_URL,
            json={"address": ADDRESS, "balance": "5908608998949008", "txs": 3},
        )

        async with ExplorerClient(BASE) as explorer:
            assert await explorer.get_address_balance(ADDRESS) == 5908608998949008

    @pytest.mark.asyncio
    async def test_missing_balance_is_zero(self, httpx_mock: "HTTPXMock") -> None:
        """Test a response without a balance parses to zero."""
        httpx_mock.add_response(url=ADDRESS_URL, json={"address": ADDRESS})

        async with ExplorerClient(BASE) as explorer:
            assert await explorer.get_address_balance(ADDRESS) == 0

    @pytest.mark.asyncio
    async def test_error_status_raises(self, httpx_mock: "HTTPXMock") -> None:
        """Test a failed lookup raises UpstreamError."""
        httpx_mock.add_response(url=ADDRESS_URL, status_code=400)

        async with ExplorerClient(BASE) as explorer:
            with pytest.raises(UpstreamError):
                await explorer.get_address_balance(ADDRESS)

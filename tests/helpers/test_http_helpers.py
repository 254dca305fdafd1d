"""Tests for HTTP helpers."""

import httpx
import pytest

from richlist.helpers.errors import BlockNotFoundError, UpstreamError
from richlist.helpers.http import (
    cache_bust_params,
    create_http_client,
    handle_http_errors,
    log_and_suppress_errors,
)


class TestCreateHttpClient:
    """Tests for create_http_client function."""

    @pytest.mark.asyncio
    async def test_sends_no_cache_headers(self) -> None:
        """Test that every request carries no-cache directives."""
        async with create_http_client() as client:
            assert client.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
            assert client.headers["Pragma"] == "no-cache"

    @pytest.mark.asyncio
    async def test_extra_headers_are_merged(self) -> None:
        """Test caller headers are kept alongside the defaults."""
        async with create_http_client(headers={"User-Agent": "richlist"}) as client:
            assert client.headers["User-Agent"] == "richlist"
            assert client.headers["Pragma"] == "no-cache"

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Test the read timeout is applied."""
        async with create_http_client(timeout=12.0) as client:
            assert client.timeout.read == 12.0


class TestCacheBustParams:
    """Tests for cache_bust_params function."""

    def test_adds_timestamp(self) -> None:
        """Test a numeric _cb parameter is added."""
        params = cache_bust_params()

        assert params["_cb"].isdigit()

    def test_keeps_existing_params(self) -> None:
        """Test existing parameters are preserved."""
        params = cache_bust_params({"details": "basic"})

        assert params["details"] == "basic"
        assert "_cb" in params


class TestHandleHttpErrors:
    """Tests for handle_http_errors decorator."""

    @pytest.mark.asyncio
    async def test_returns_value_on_success(self) -> None:
        """Test the wrapped value is returned unchanged."""

        @handle_http_errors(default_return=set())
        async def ok() -> set[str]:
            return {"a"}

        assert await ok() == {"a"}

    @pytest.mark.asyncio
    async def test_upstream_error_returns_default(self) -> None:
        """Test UpstreamError is converted to the default."""

        @handle_http_errors(default_return=None, log_errors=False)
        async def fails() -> set[str]:
            raise UpstreamError("boom", status_code=502)

        assert await fails() is None

    @pytest.mark.asyncio
    async def test_not_found_returns_default(self) -> None:
        """Test a missing block is converted to the default."""

        @handle_http_errors(default_return=None)
        async def missing() -> set[str]:
            raise BlockNotFoundError(10)

        assert await missing() is None

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_default(self) -> None:
        """Test errors other than UpstreamError are converted to the default."""

        @handle_http_errors(default_return=[])
        async def fails() -> list[str]:
            raise httpx.ConnectError("refused")

        assert await fails() == []


class TestLogAndSuppressErrors:
    """Tests for log_and_suppress_errors context manager."""

    @pytest.mark.asyncio
    async def test_suppresses(self) -> None:
        """Test errors are swallowed by default."""
        async with log_and_suppress_errors("operation"):
            raise RuntimeError("ignored")

    @pytest.mark.asyncio
    async def test_reraises_when_not_suppressing(self) -> None:
        """Test errors propagate with suppress=False."""
        with pytest.raises(RuntimeError, match="kept"):
            async with log_and_suppress_errors("operation", suppress=False):
                raise RuntimeError("kept")

"""Tests for block address extraction."""

from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from richlist.explorer.models import BlockResponse
from richlist.helpers.errors import UpstreamError
from richlist.scanner.blocks import (
    extract_block_addresses,
    is_candidate_address,
    scan_block_addresses,
)


if TYPE_CHECKING:
    from tests.conftest import FakeExplorer


A = "MAaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
B = "MBbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
C = "MCcccccccccccccccccccccccccccccccc"


class TestIsCandidateAddress:
    """Tests for is_candidate_address function."""

    @pytest.mark.parametrize(
        "token",
        ["", None, "OP_RETURN 6a24aa21a9ed" + "0" * 40, "x" * 20, "short"],
    )
    def test_rejects(self, token: str | None) -> None:
        """Test empty, data-carrier and short tokens are rejected."""
        assert not is_candidate_address(token)

    def test_length_boundary(self) -> None:
        """Test 21 characters is the shortest accepted token."""
        assert is_candidate_address("x" * 21)

    def test_accepts_address(self) -> None:
        """Test a regular address is accepted."""
        assert is_candidate_address(A)


class TestExtractBlockAddresses:
    """Tests for extract_block_addresses function."""

    def test_inputs_and_outputs(self, make_block: Callable[..., BlockResponse]) -> None:
        """Test inputs and outputs of every transaction are collected."""
        block = make_block(10, [A, B], [B, C])

        assert extract_block_addresses(block) == {A, B, C}

    def test_filters_and_deduplicates(self) -> None:
        """Test artifacts are filtered and repeats collapse."""
        block = BlockResponse.model_validate({
            "txs": [
                {
                    "vin": [{"addresses": [A, ""]}, {}],
                    "vout": [
                        {"addresses": ["OP_RETURN aabbccddeeff00112233"]},
                        {"addresses": [A, "tiny"]},
                    ],
                }
            ]
        })

        assert extract_block_addresses(block) == {A}

    def test_empty_block(self) -> None:
        """Test a block without transactions yields nothing."""
        assert extract_block_addresses(BlockResponse()) == set()


class TestScanBlockAddresses:
    """Tests for scan_block_addresses function."""

    @pytest.mark.asyncio
    async def test_returns_addresses(
        self, explorer: "FakeExplorer", make_block: Callable[..., BlockResponse]
    ) -> None:
        """Test addresses of a fetched block are returned."""
        explorer.blocks[7] = make_block(7, [A, B])

        assert await scan_block_addresses(explorer, 7) == {A, B}

    @pytest.mark.asyncio
    async def test_missing_block_is_empty(self, explorer: "FakeExplorer") -> None:
        """Test a block that does not exist yields an empty set."""
        assert await scan_block_addresses(explorer, 8) == set()

    @pytest.mark.asyncio
    async def test_upstream_error_is_empty(self, explorer: "FakeExplorer") -> None:
        """Test a failing fetch yields an empty set instead of raising."""
        explorer.block_errors[9] = UpstreamError("boom", status_code=500)

        assert await scan_block_addresses(explorer, 9) == set()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_empty(self, explorer: "FakeExplorer") -> None:
        """Test even unexpected errors do not escape."""
        explorer.block_errors[9] = RuntimeError("parse failure")

        assert await scan_block_addresses(explorer, 9) == set()

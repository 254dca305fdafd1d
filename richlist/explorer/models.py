"""Pydantic models for Blockbook explorer responses."""

from pydantic import BaseModel, ConfigDict, Field


class BlockbookInfo(BaseModel):
    """The ``blockbook`` section of the ``/api/`` status document."""

    best_height: int | None = Field(
        default=None, description="Best height indexed by Blockbook", alias="bestHeight"
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class BackendInfo(BaseModel):
    """The ``backend`` section of the ``/api/`` status document."""

    blocks: int | None = Field(default=None, description="Best height of the node")

    model_config = ConfigDict(extra="allow")


class StatusResponse(BaseModel):
    """Response of ``GET /api/``."""

    blockbook: BlockbookInfo | None = None
    backend: BackendInfo | None = None

    model_config = ConfigDict(extra="allow")

    @property
    def height(self) -> int:
        """Best chain height, preferring the indexer's view (0 if unknown)."""
        if self.blockbook and self.blockbook.best_height:
            return self.blockbook.best_height
        if self.backend and self.backend.blocks:
            return self.backend.blocks
        return 0


class TxEndpoint(BaseModel):
    """A transaction input (vin) or output (vout)."""

    addresses: list[str] | None = None
    is_address: bool | None = Field(default=None, alias="isAddress")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class BlockTx(BaseModel):
    """Transaction as listed in a block response."""

    txid: str | None = None
    vin: list[TxEndpoint] = Field(default_factory=list)
    vout: list[TxEndpoint] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class BlockResponse(BaseModel):
    """Response of ``GET /api/v2/block/{height}``."""

    height: int | None = None
    hash: str | None = None
    page: int | None = None
    total_pages: int | None = Field(default=None, alias="totalPages")
    txs: list[BlockTx] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class AddressResponse(BaseModel):
    """Response of ``GET /api/v2/address/{address}?details=basic``."""

    address: str | None = None
    balance: str | int | None = Field(
        default=None, description="Balance in sats as string"
    )
    unconfirmed_balance: str | int | None = Field(
        default=None, alias="unconfirmedBalance"
    )
    txs: int | None = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)


__all__ = [
    "AddressResponse",
    "BackendInfo",
    "BlockResponse",
    "BlockTx",
    "BlockbookInfo",
    "StatusResponse",
    "TxEndpoint",
]

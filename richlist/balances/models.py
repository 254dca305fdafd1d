"""Pydantic models for balance lookups."""

from pydantic import BaseModel, Field


class BalanceRecord(BaseModel):
    """Balance of one address as fetched during a refresh cycle."""

    address: str
    balance_sat: int = Field(..., ge=0, description="Confirmed balance in sats")

"""Pydantic models for persisted rich list records."""

from typing import Self

from pydantic import BaseModel, Field, model_validator


class TopEntry(BaseModel):
    """One ranked address in a snapshot."""

    address: str
    balance_sat: int = Field(..., ge=0, description="Balance in sats")
    balance: str = Field(..., description="Display balance in whole coins")
    updated_at: str = Field(..., description="ISO-8601 time the balance was fetched")
    label: str | None = None


class Snapshot(BaseModel):
    """A ranked top-N list tagged with the chain height it reflects."""

    height: int = Field(..., ge=0)
    updated_at: str
    entries: list[TopEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_ranking(self) -> Self:
        """Entries must be unique and sorted by descending balance."""
        seen: set[str] = set()
        previous: int | None = None
        for entry in self.entries:
            if entry.address in seen:
                msg = f"Duplicate address in snapshot: {entry.address}"
                raise ValueError(msg)
            if previous is not None and entry.balance_sat > previous:
                msg = "Snapshot entries are not sorted by descending balance"
                raise ValueError(msg)
            seen.add(entry.address)
            previous = entry.balance_sat
        return self

    @property
    def addresses(self) -> list[str]:
        """Addresses in rank order."""
        return [entry.address for entry in self.entries]


class LastHeightRecord(BaseModel):
    """Height of the last fully completed refresh cycle."""

    height: int = Field(..., ge=0)


__all__ = ["LastHeightRecord", "Snapshot", "TopEntry"]

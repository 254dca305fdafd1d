"""Models describing a refresh cycle."""

from enum import StrEnum

from pydantic import BaseModel


class RefreshState(StrEnum):
    """Phases of one refresh cycle."""

    IDLE = "idle"
    DETERMINING_HEIGHT = "determining_height"
    SELECTING_ADDRESSES = "selecting_addresses"
    FETCHING_BALANCES = "fetching_balances"
    PERSISTING = "persisting"
    DONE = "done"
    ERROR = "error"


class RefreshMode(StrEnum):
    """How the cycle advanced its height or chose its addresses."""

    PROACTIVE = "proactive"
    FALLBACK = "fallback"
    TRADITIONAL = "traditional"
    CATCH_UP = "catch-up"


class RefreshResult(BaseModel):
    """Metrics returned by one refresh cycle."""

    ok: bool = True
    skipped: bool = False
    reason: str | None = None
    updated: bool = False
    mode: RefreshMode
    height: int
    last_height: int | None = None
    count: int = 0
    total_addresses_checked: int = 0
    new_addresses_discovered: int = 0
    block_gap: int = 0
    catch_up_mode: bool = False
    processing_time_seconds: float = 0.0
    min_balance_required: float | None = None


__all__ = ["RefreshMode", "RefreshResult", "RefreshState"]

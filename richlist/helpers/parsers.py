"""Parsing utilities for amounts and explorer values."""

import re
from decimal import Decimal

from richlist.helpers.constants import MAX_FRACTION_DIGITS, SATS_PER_COIN
from richlist.helpers.logging import get_logger


logger = get_logger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def sats_to_coin(sats: int) -> float:
    """Convert minor units to whole coins (divide by 1e8).

    Example:
        >>> sats_to_coin(150_000_000)
        1.5
    """
    return sats / SATS_PER_COIN


def coin_to_sats(coin: float | str | Decimal) -> int:
    """Convert whole coins to minor units, truncating sub-satoshi digits.

    Example:
        >>> coin_to_sats("10")
        1000000000
    """
    return int(Decimal(str(coin)) * SATS_PER_COIN)


def format_sats(sats: int) -> str:
    """Format minor units as a display balance.

    Uses exact decimal arithmetic, at most 8 fraction digits with trailing
    zeros removed and ``,`` thousands grouping. The output does not depend on
    the process locale.

    Args:
        sats: Amount in minor units

    Returns:
        str: Display string

    Example:
        >>> format_sats(5908608998949008)
        '59,086,089.98949008'
        >>> format_sats(0)
        '0'
    """
    negative = sats < 0
    whole, frac = divmod(abs(sats), SATS_PER_COIN)
    text = f"{whole:,}"
    frac_digits = f"{frac:0{MAX_FRACTION_DIGITS}d}".rstrip("0")
    if frac_digits:
        text = f"{text}.{frac_digits}"
    return f"-{text}" if negative else text


def parse_balance_sats(raw: str | int | None) -> int:
    """Parse an explorer balance string into minor units.

    Parsing is lenient: the leading integer prefix is used, and anything
    without one parses to 0. A parse failure is logged but is otherwise
    indistinguishable from a confirmed zero balance. Negative values clamp
    to 0.

    Args:
        raw: Decimal balance string in minor units

    Returns:
        int: Balance in minor units

    Example:
        >>> parse_balance_sats("5908608998949008")
        5908608998949008
        >>> parse_balance_sats("garbage")
        0
    """
    if raw is None or raw == "":
        return 0
    if isinstance(raw, int):
        return max(raw, 0)

    match = _LEADING_INT.match(raw)
    if not match:
        logger.warning("Unparseable balance %r, treating as 0", raw[:40])
        return 0

    value = int(match.group(1))
    if value < 0:
        logger.warning("Negative balance %r, treating as 0", raw[:40])
        return 0
    return value


__all__ = [
    "coin_to_sats",
    "format_sats",
    "parse_balance_sats",
    "sats_to_coin",
]

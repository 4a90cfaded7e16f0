"""Platform fee calculation."""

from __future__ import annotations

from .config import BPS_DENOMINATOR, MAX_PLATFORM_FEE_RATE


def calculate_fee(amount: int, rate_bps: int) -> int:
    """Fee = floor(amount * rate / 10_000)."""
    return amount * rate_bps // BPS_DENOMINATOR


def is_valid_fee_rate(rate_bps: object) -> bool:
    return (
        isinstance(rate_bps, int)
        and not isinstance(rate_bps, bool)
        and 0 <= rate_bps <= MAX_PLATFORM_FEE_RATE
    )

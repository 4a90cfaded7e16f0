"""Read-only projections over the escrow ledger."""

from __future__ import annotations

from typing import Optional

from .fees import calculate_fee
from .roles import is_expired
from .types import ChainState, EscrowRecord, EscrowStatus

STATUS_STRINGS = {
    EscrowStatus.ACTIVE: "active",
    EscrowStatus.DELIVERED: "delivered",
    EscrowStatus.RELEASED: "released",
    EscrowStatus.REFUNDED: "refunded",
    EscrowStatus.DISPUTED: "disputed",
}


def get_escrow(state: ChainState, escrow_id: int) -> Optional[EscrowRecord]:
    return state.escrows.get(escrow_id)


def get_escrow_fee(state: ChainState, escrow_id: int) -> Optional[int]:
    return state.escrow_fees.get(escrow_id)


def get_escrow_counter(state: ChainState) -> int:
    return state.global_state.escrow_counter


def get_platform_fee_rate(state: ChainState) -> int:
    return state.global_state.platform_fee_rate


def get_platform_owner(state: ChainState) -> bytes:
    return state.global_state.platform_owner


def calculate_platform_fee(state: ChainState, amount: int) -> int:
    """Fee a new escrow of `amount` would be charged at the current rate."""
    return calculate_fee(amount, state.global_state.platform_fee_rate)


def is_escrow_expired(state: ChainState, escrow_id: int) -> bool:
    """True once the current height is past the escrow timeout.

    Unknown ids are reported as not expired. The check is purely height-based
    and does not look at the status.
    """
    escrow = state.escrows.get(escrow_id)
    if escrow is None:
        return False
    return is_expired(state, escrow)


def get_status_string(status: int) -> str:
    try:
        return STATUS_STRINGS[EscrowStatus(status)]
    except ValueError:
        return "unknown"

"""Platform fee policy transaction specs (SetPlatformFeeRate)."""

from __future__ import annotations

from copy import deepcopy

from ..config import MAX_PLATFORM_FEE_RATE
from ..errors import ErrorCode, SpecError
from ..fees import is_valid_fee_rate
from ..roles import require_owner
from ..types import ChainState, Transaction, TransactionType


def verify(state: ChainState, tx: Transaction) -> None:
    p = tx.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "platform payload must be dict")
    if tx.tx_type != TransactionType.SET_PLATFORM_FEE_RATE:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported platform tx type: {tx.tx_type}")

    require_owner(state, tx.source, "set the platform fee rate")
    if not is_valid_fee_rate(p.get("rate")):
        raise SpecError(
            ErrorCode.INVALID_FEE_RATE,
            f"fee rate must be an integer within [0, {MAX_PLATFORM_FEE_RATE}] bps",
        )


def apply(state: ChainState, tx: Transaction) -> ChainState:
    if tx.tx_type != TransactionType.SET_PLATFORM_FEE_RATE:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported platform tx type: {tx.tx_type}")
    ns = deepcopy(state)
    ns.global_state.platform_fee_rate = tx.payload["rate"]
    return ns

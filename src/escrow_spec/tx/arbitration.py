"""Dispute arbitration transaction specs (ResolveDispute)."""

from __future__ import annotations

from copy import deepcopy

from ..errors import ErrorCode, SpecError
from ..ledger import get_escrow
from ..roles import require_role, roles_for
from ..types import ChainState, EscrowStatus, Role, Transaction, TransactionType
from .escrow import escrow_id_of, settle_to_buyer, settle_to_seller


def verify(state: ChainState, tx: Transaction) -> None:
    p = tx.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "arbitration payload must be dict")
    if tx.tx_type != TransactionType.RESOLVE_DISPUTE:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported arbitration tx type: {tx.tx_type}")

    escrow = get_escrow(state, escrow_id_of(p))
    require_role(roles_for(state, tx.source, escrow), Role.OWNER, "resolve disputes")
    if escrow.status != EscrowStatus.DISPUTED:
        raise SpecError(ErrorCode.INVALID_STATUS, "escrow not disputed")

    winner = p.get("winner")
    if winner not in (escrow.buyer, escrow.seller):
        raise SpecError(ErrorCode.INVALID_WINNER, "winner must be the buyer or the seller")


def apply(state: ChainState, tx: Transaction) -> ChainState:
    if tx.tx_type != TransactionType.RESOLVE_DISPUTE:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported arbitration tx type: {tx.tx_type}")

    ns = deepcopy(state)
    p = tx.payload
    escrow = get_escrow(ns, escrow_id_of(p))
    # The seller winning settles exactly like release_funds, fee included.
    if p["winner"] == escrow.seller:
        settle_to_seller(ns, escrow)
    else:
        settle_to_buyer(ns, escrow)
    return ns

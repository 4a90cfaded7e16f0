"""Escrow lifecycle transaction specs.

Create, confirm delivery, release, refund and dispute. Every operation on an
existing escrow checks, in order: the escrow exists, the caller holds a role
allowed for the operation (release is open to every caller), the escrow
status permits it, and then any operation-specific rule.
"""

from __future__ import annotations

from copy import deepcopy

from ..config import CUSTODY_ADDRESS, MAX_DESCRIPTION_LEN, U64_MAX
from ..errors import ErrorCode, SpecError
from ..fees import calculate_fee
from ..ledger import get_escrow, insert_escrow, next_escrow_id, pay_out, take_into_custody
from ..roles import is_expired, require_role, roles_for
from ..types import (
    ChainState,
    EscrowRecord,
    EscrowStatus,
    Role,
    Transaction,
    TransactionType,
)

ESCROW_TYPES = frozenset({
    TransactionType.CREATE_ESCROW,
    TransactionType.CONFIRM_DELIVERY,
    TransactionType.RELEASE_FUNDS,
    TransactionType.REFUND_ESCROW,
    TransactionType.DISPUTE_ESCROW,
})


def _is_uint(v: object) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and v >= 0


def escrow_id_of(p: dict) -> int:
    eid = p.get("escrow_id")
    if not _is_uint(eid):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "escrow_id must be an unsigned integer")
    return eid


def verify(state: ChainState, tx: Transaction) -> None:
    p = tx.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "escrow payload must be dict")

    tt = tx.tx_type
    if tt == TransactionType.CREATE_ESCROW:
        _verify_create(state, tx, p)
    elif tt == TransactionType.CONFIRM_DELIVERY:
        _verify_confirm(state, tx, p)
    elif tt == TransactionType.RELEASE_FUNDS:
        _verify_release(state, tx, p)
    elif tt == TransactionType.REFUND_ESCROW:
        _verify_refund(state, tx, p)
    elif tt == TransactionType.DISPUTE_ESCROW:
        _verify_dispute(state, tx, p)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow tx type: {tt}")


def apply(state: ChainState, tx: Transaction) -> ChainState:
    p = tx.payload
    tt = tx.tx_type
    if tt == TransactionType.CREATE_ESCROW:
        return _apply_create(state, tx, p)
    elif tt == TransactionType.CONFIRM_DELIVERY:
        return _apply_confirm(state, tx, p)
    elif tt == TransactionType.RELEASE_FUNDS:
        return _apply_release(state, tx, p)
    elif tt == TransactionType.REFUND_ESCROW:
        return _apply_refund(state, tx, p)
    elif tt == TransactionType.DISPUTE_ESCROW:
        return _apply_dispute(state, tx, p)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow tx type: {tt}")


def settle_to_seller(state: ChainState, escrow: EscrowRecord) -> None:
    """Pay principal to the seller and the stored fee to the platform owner."""
    pay_out(state, escrow.seller, escrow.amount)
    pay_out(state, state.global_state.platform_owner, state.escrow_fees[escrow.id])
    escrow.status = EscrowStatus.RELEASED


def settle_to_buyer(state: ChainState, escrow: EscrowRecord) -> None:
    """Return principal and stored fee to the buyer."""
    pay_out(state, escrow.buyer, escrow.amount + state.escrow_fees[escrow.id])
    escrow.status = EscrowStatus.REFUNDED


# --- CREATE_ESCROW ---

def _verify_create(state: ChainState, tx: Transaction, p: dict) -> None:
    seller = p.get("seller")
    if not isinstance(seller, bytes) or len(seller) != 32:
        raise SpecError(ErrorCode.INVALID_ADDRESS, "seller must be a 32-byte address")
    if seller == CUSTODY_ADDRESS:
        raise SpecError(ErrorCode.INVALID_ADDRESS, "seller cannot be the custody account")
    if seller == tx.source:
        raise SpecError(ErrorCode.SELF_OPERATION, "buyer cannot be seller")

    amount = p.get("amount", 0)
    if not _is_uint(amount):
        raise SpecError(ErrorCode.INVALID_AMOUNT, "escrow amount must be an unsigned integer")
    if amount == 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "escrow amount must be > 0")
    if amount > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "escrow amount exceeds u64 max")

    timeout = p.get("timeout_blocks", 0)
    if not _is_uint(timeout):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "timeout_blocks must be an unsigned integer")
    if state.global_state.block_height + timeout > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "timeout height overflow")

    description = p.get("description", "")
    if not isinstance(description, str) or len(description) > MAX_DESCRIPTION_LEN:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "invalid description")

    fee = calculate_fee(amount, state.global_state.platform_fee_rate)
    if amount + fee > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "amount plus fee overflow")

    buyer = state.accounts.get(tx.source)
    if buyer is None or buyer.balance < amount + fee:
        raise SpecError(ErrorCode.INSUFFICIENT_FUNDS, "buyer cannot cover amount plus fee")


def _apply_create(state: ChainState, tx: Transaction, p: dict) -> ChainState:
    ns = deepcopy(state)
    height = ns.global_state.block_height
    amount = p["amount"]
    fee = calculate_fee(amount, ns.global_state.platform_fee_rate)

    take_into_custody(ns, tx.source, amount + fee)
    insert_escrow(
        ns,
        EscrowRecord(
            id=next_escrow_id(ns),
            buyer=tx.source,
            seller=p["seller"],
            amount=amount,
            fee=fee,
            timeout_height=height + p.get("timeout_blocks", 0),
            status=EscrowStatus.ACTIVE,
            description=p.get("description", ""),
            created_height=height,
        ),
    )
    return ns


# --- CONFIRM_DELIVERY ---

def _verify_confirm(state: ChainState, tx: Transaction, p: dict) -> None:
    escrow = get_escrow(state, escrow_id_of(p))
    require_role(roles_for(state, tx.source, escrow), Role.BUYER, "confirm delivery")
    if escrow.status != EscrowStatus.ACTIVE:
        raise SpecError(ErrorCode.INVALID_STATUS, "escrow not active")


def _apply_confirm(state: ChainState, tx: Transaction, p: dict) -> ChainState:
    ns = deepcopy(state)
    escrow = get_escrow(ns, escrow_id_of(p))
    escrow.status = EscrowStatus.DELIVERED
    return ns


# --- RELEASE_FUNDS ---

def _verify_release(state: ChainState, tx: Transaction, p: dict) -> None:
    escrow = get_escrow(state, escrow_id_of(p))
    # Open to any caller; the status and the timeout decide.
    if escrow.status == EscrowStatus.DELIVERED:
        return
    if escrow.status == EscrowStatus.ACTIVE and is_expired(state, escrow):
        return
    raise SpecError(ErrorCode.INVALID_STATUS, "escrow not releasable")


def _apply_release(state: ChainState, tx: Transaction, p: dict) -> ChainState:
    ns = deepcopy(state)
    escrow = get_escrow(ns, escrow_id_of(p))
    settle_to_seller(ns, escrow)
    return ns


# --- REFUND_ESCROW ---

def _verify_refund(state: ChainState, tx: Transaction, p: dict) -> None:
    escrow = get_escrow(state, escrow_id_of(p))
    require_role(roles_for(state, tx.source, escrow), Role.SELLER, "refund escrow")
    if escrow.status != EscrowStatus.ACTIVE:
        raise SpecError(ErrorCode.INVALID_STATUS, "escrow not active")
    # Past the timeout only release_funds may settle the escrow.
    if is_expired(state, escrow):
        raise SpecError(ErrorCode.ESCROW_EXPIRED, "refund window closed")


def _apply_refund(state: ChainState, tx: Transaction, p: dict) -> ChainState:
    ns = deepcopy(state)
    escrow = get_escrow(ns, escrow_id_of(p))
    settle_to_buyer(ns, escrow)
    return ns


# --- DISPUTE_ESCROW ---

def _verify_dispute(state: ChainState, tx: Transaction, p: dict) -> None:
    escrow = get_escrow(state, escrow_id_of(p))
    require_role(roles_for(state, tx.source, escrow), Role.BUYER | Role.SELLER, "dispute escrow")
    if escrow.status != EscrowStatus.ACTIVE:
        raise SpecError(ErrorCode.INVALID_STATUS, "escrow not active")


def _apply_dispute(state: ChainState, tx: Transaction, p: dict) -> ChainState:
    ns = deepcopy(state)
    escrow = get_escrow(ns, escrow_id_of(p))
    escrow.status = EscrowStatus.DISPUTED
    return ns

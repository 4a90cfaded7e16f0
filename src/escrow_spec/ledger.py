"""Escrow ledger: the escrow arena, stored fees and custody transfers.

All helpers mutate the `ChainState` they are given. Callers pass the working
copy produced by `state_transition.apply_tx`, so a raised `SpecError` never
leaks a partial update into the committed state.
"""

from __future__ import annotations

from .config import CUSTODY_ADDRESS, U64_MAX
from .errors import ErrorCode, SpecError
from .types import AccountState, ChainState, EscrowRecord


def get_escrow(state: ChainState, escrow_id: int) -> EscrowRecord:
    escrow = state.escrows.get(escrow_id)
    if escrow is None:
        raise SpecError(ErrorCode.ESCROW_NOT_FOUND, f"escrow {escrow_id} not found")
    return escrow


def next_escrow_id(state: ChainState) -> int:
    return state.global_state.escrow_counter + 1


def insert_escrow(state: ChainState, escrow: EscrowRecord) -> int:
    """Append a record under the next sequential id and bump the counter."""
    if escrow.id != next_escrow_id(state) or escrow.id in state.escrows:
        raise SpecError(ErrorCode.INTERNAL_ERROR, f"escrow id {escrow.id} out of sequence")
    state.escrows[escrow.id] = escrow
    state.escrow_fees[escrow.id] = escrow.fee
    state.global_state.escrow_counter = escrow.id
    return escrow.id


def balance_of(state: ChainState, address: bytes) -> int:
    account = state.accounts.get(address)
    return account.balance if account is not None else 0


def custody_balance(state: ChainState) -> int:
    return balance_of(state, CUSTODY_ADDRESS)


def transfer(state: ChainState, source: bytes, destination: bytes, amount: int) -> None:
    """Move `amount` between two accounts, creating the receiver on first credit.

    Both sides are checked before either balance changes.
    """
    if amount < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "transfer amount negative")
    if amount == 0 or source == destination:
        return

    sender = state.accounts.get(source)
    if sender is None or sender.balance < amount:
        raise SpecError(ErrorCode.INSUFFICIENT_FUNDS, "insufficient balance")

    receiver = state.accounts.get(destination)
    if receiver is not None and receiver.balance + amount > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "receiver balance overflow")

    if receiver is None:
        receiver = AccountState(address=destination)
        state.accounts[destination] = receiver
    sender.balance -= amount
    receiver.balance += amount


def pay_out(state: ChainState, destination: bytes, amount: int) -> None:
    transfer(state, CUSTODY_ADDRESS, destination, amount)


def take_into_custody(state: ChainState, source: bytes, amount: int) -> None:
    transfer(state, source, CUSTODY_ADDRESS, amount)

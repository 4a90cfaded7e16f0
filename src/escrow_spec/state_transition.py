"""State transition entrypoints for the escrow engine specs."""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import replace
from typing import Optional

from .config import CUSTODY_ADDRESS, MAX_NONCE_GAP, EngineConfig
from .errors import ErrorCode, SpecError
from .events import EscrowEvent, build_event
from .types import AccountState, ChainState, GlobalState, Transaction, TransactionType
from .tx import arbitration as tx_arbitration
from .tx import escrow as tx_escrow
from .tx import platform as tx_platform

logger = logging.getLogger(__name__)


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(
        self,
        ok: bool,
        error: Optional[SpecError] = None,
        events: Optional[list[EscrowEvent]] = None,
    ):
        self.ok = ok
        self.error = error
        self.events = events or []

    @classmethod
    def success(cls, events: Optional[list[EscrowEvent]] = None) -> "TransitionResult":
        return cls(True, None, events)

    @classmethod
    def failure(cls, error: SpecError) -> "TransitionResult":
        return cls(False, error)


def genesis_state(
    config: EngineConfig, accounts: Optional[dict[bytes, int]] = None
) -> ChainState:
    """Fresh ledger: no escrows, the configured owner and fee rate."""
    state = ChainState(
        network_chain_id=config.chain_id,
        global_state=GlobalState(
            platform_fee_rate=config.platform_fee_rate,
            platform_owner=config.owner,
            block_height=config.start_height,
        ),
    )
    for address, balance in (accounts or {}).items():
        state.accounts[address] = AccountState(address=address, balance=balance)
    return state


def _dispatch_verify(state: ChainState, tx: Transaction) -> None:
    tt = tx.tx_type
    if tt in tx_escrow.ESCROW_TYPES:
        return tx_escrow.verify(state, tx)
    if tt == TransactionType.RESOLVE_DISPUTE:
        return tx_arbitration.verify(state, tx)
    if tt == TransactionType.SET_PLATFORM_FEE_RATE:
        return tx_platform.verify(state, tx)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {tx.tx_type}")


def _dispatch_apply(state: ChainState, tx: Transaction) -> ChainState:
    tt = tx.tx_type
    if tt in tx_escrow.ESCROW_TYPES:
        return tx_escrow.apply(state, tx)
    if tt == TransactionType.RESOLVE_DISPUTE:
        return tx_arbitration.apply(state, tx)
    if tt == TransactionType.SET_PLATFORM_FEE_RATE:
        return tx_platform.apply(state, tx)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {tx.tx_type}")


def _verify_common(state: ChainState, tx: Transaction) -> None:
    if tx.chain_id != state.network_chain_id:
        raise SpecError(ErrorCode.INVALID_TYPE, "chain_id mismatch")

    if not isinstance(tx.tx_type, TransactionType):
        raise SpecError(ErrorCode.INVALID_TYPE, f"unknown tx type: {tx.tx_type!r}")

    # Custody is only ever moved by the engine itself.
    if tx.source == CUSTODY_ADDRESS:
        raise SpecError(ErrorCode.UNAUTHORIZED, "custody account cannot sign")

    sender = state.accounts.get(tx.source)
    if sender is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "sender not found")

    if tx.nonce < sender.nonce:
        raise SpecError(ErrorCode.NONCE_TOO_LOW, "nonce too low")

    if tx.nonce > sender.nonce + MAX_NONCE_GAP:
        raise SpecError(ErrorCode.NONCE_TOO_HIGH, "nonce too high")


def verify_tx(state: ChainState, tx: Transaction) -> TransitionResult:
    """Stateless + stateful verification for a single tx."""
    try:
        _verify_common(state, tx)
        _dispatch_verify(state, tx)
        return TransitionResult.success()
    except SpecError as exc:
        return TransitionResult.failure(exc)


def _require_strict_nonce(sender_nonce: int, tx_nonce: int) -> None:
    if tx_nonce < sender_nonce:
        raise SpecError(ErrorCode.NONCE_TOO_LOW, "nonce too low")
    if tx_nonce > sender_nonce:
        raise SpecError(ErrorCode.NONCE_TOO_HIGH, "nonce too high")


def apply_tx(state: ChainState, tx: Transaction) -> tuple[ChainState, TransitionResult]:
    """Apply tx to state after verification.

    Failed-tx semantics: the input state is returned unchanged, including the
    sender nonce. On success the returned state is a new object; the input is
    never mutated.
    """
    try:
        _verify_common(state, tx)
        sender = state.accounts[tx.source]
        _require_strict_nonce(sender.nonce, tx.nonce)
        _dispatch_verify(state, tx)
    except SpecError as exc:
        logger.debug("rejected %s from %s: %s", tx.tx_type, tx.source.hex(), exc)
        return state, TransitionResult.failure(exc)

    working = deepcopy(state)

    try:
        working = _dispatch_apply(working, tx)
        working.accounts[tx.source].nonce += 1
        # The event hashes the wire form, which can still reject the tx.
        event = build_event(tx, state, working)
    except SpecError as exc:
        logger.debug("execution failed %s from %s: %s", tx.tx_type, tx.source.hex(), exc)
        return state, TransitionResult.failure(exc)

    logger.debug("applied %s (escrow=%s)", event.name, event.escrow_id)
    return working, TransitionResult.success([event])


def apply_block(state: ChainState, txs: list[Transaction]) -> tuple[ChainState, TransitionResult]:
    """Apply a block worth of transactions in order (block-atomic semantics).

    If any transaction fails, the entire block is rejected and the state is
    unchanged. Otherwise the height advances by one after the last tx, so
    every tx in the block observes the same height.
    """
    working = state
    events: list[EscrowEvent] = []
    for tx in txs:
        working, result = apply_tx(working, tx)
        if not result.ok:
            logger.debug("block rejected at height %d", state.global_state.block_height)
            return state, result
        events.extend(result.events)

    working = replace(
        working,
        global_state=replace(
            working.global_state, block_height=working.global_state.block_height + 1
        ),
    )
    return working, TransitionResult.success(events)


def advance_height(state: ChainState, blocks: int = 1) -> ChainState:
    """Move the environment height forward without applying transactions."""
    if blocks < 0:
        raise ValueError("height never decreases")
    return replace(
        state,
        global_state=replace(
            state.global_state, block_height=state.global_state.block_height + blocks
        ),
    )

"""Arbitration tx fixtures (resolve_dispute)."""

from __future__ import annotations

from escrow_spec.config import CHAIN_ID_DEVNET, CUSTODY_ADDRESS
from escrow_spec.ledger import balance_of, custody_balance
from escrow_spec.state_transition import advance_height, apply_tx
from escrow_spec.test_accounts import ALICE, BOB, CAROL, OWNER
from escrow_spec.types import (
    AccountState,
    ChainState,
    EscrowRecord,
    EscrowStatus,
    Transaction,
    TransactionType,
)

AMOUNT = 500_000
FEE = 12_500


def _base_state(status: EscrowStatus = EscrowStatus.DISPUTED) -> ChainState:
    """Ledger holding escrow 1 (ALICE -> BOB) already funded into custody."""
    state = ChainState(network_chain_id=CHAIN_ID_DEVNET)
    state.global_state.platform_owner = OWNER
    state.global_state.block_height = 50
    state.global_state.escrow_counter = 1
    state.accounts[OWNER] = AccountState(address=OWNER)
    state.accounts[ALICE] = AccountState(address=ALICE, balance=1_000)
    state.accounts[BOB] = AccountState(address=BOB)
    state.accounts[CAROL] = AccountState(address=CAROL)

    state.accounts[CUSTODY_ADDRESS] = AccountState(address=CUSTODY_ADDRESS, balance=AMOUNT + FEE)
    state.escrows[1] = EscrowRecord(
        id=1,
        buyer=ALICE,
        seller=BOB,
        amount=AMOUNT,
        fee=FEE,
        timeout_height=40,
        status=status,
        description="disputed order",
        created_height=30,
    )
    state.escrow_fees[1] = FEE
    return state


def _resolve(state: ChainState, sender: bytes, winner: object, escrow_id: int = 1) -> Transaction:
    return Transaction(
        chain_id=CHAIN_ID_DEVNET,
        source=sender,
        tx_type=TransactionType.RESOLVE_DISPUTE,
        payload={"escrow_id": escrow_id, "winner": winner},
        nonce=state.accounts[sender].nonce,
    )


def test_resolve_dispute_seller_wins(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        "transactions/arbitration/resolve_dispute.json",
        "resolve_dispute_seller_wins",
        state,
        _resolve(state, OWNER, BOB),
    )

    assert result.ok
    assert post.escrows[1].status == EscrowStatus.RELEASED
    assert balance_of(post, BOB) == AMOUNT
    assert balance_of(post, OWNER) == FEE
    assert balance_of(post, ALICE) == 1_000
    assert custody_balance(post) == 0
    assert result.events[0].name == "dispute-resolved"
    assert result.events[0].fields["winner"] == BOB


def test_resolve_dispute_buyer_wins(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        "transactions/arbitration/resolve_dispute.json",
        "resolve_dispute_buyer_wins",
        state,
        _resolve(state, OWNER, ALICE),
    )

    assert result.ok
    assert post.escrows[1].status == EscrowStatus.REFUNDED
    assert balance_of(post, ALICE) == 1_000 + AMOUNT + FEE
    assert balance_of(post, BOB) == 0
    assert balance_of(post, OWNER) == 0
    assert custody_balance(post) == 0


def test_resolve_dispute_non_owner(state_test_group) -> None:
    state = _base_state()
    _, result = state_test_group(
        "transactions/arbitration/resolve_dispute.json",
        "resolve_dispute_by_buyer",
        state,
        _resolve(state, ALICE, ALICE),
    )

    assert result.error.code.name == "UNAUTHORIZED"


def test_resolve_dispute_third_party_after_timeout(state_test_group) -> None:
    state = advance_height(_base_state(), 100)
    _, result = state_test_group(
        "transactions/arbitration/resolve_dispute.json",
        "resolve_dispute_third_party_expired",
        state,
        _resolve(state, CAROL, BOB),
    )

    assert result.error.code.name == "UNAUTHORIZED"


def test_resolve_dispute_not_disputed(state_test_group) -> None:
    state = _base_state(EscrowStatus.ACTIVE)
    _, result = state_test_group(
        "transactions/arbitration/resolve_dispute.json",
        "resolve_dispute_not_disputed",
        state,
        _resolve(state, OWNER, BOB),
    )

    assert result.error.code.name == "INVALID_STATUS"


def test_resolve_dispute_invalid_winner(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        "transactions/arbitration/resolve_dispute.json",
        "resolve_dispute_invalid_winner",
        state,
        _resolve(state, OWNER, CAROL),
    )

    assert result.error.code.name == "INVALID_WINNER"
    assert post.escrows[1].status == EscrowStatus.DISPUTED
    assert custody_balance(post) == AMOUNT + FEE


def test_resolve_dispute_unknown_escrow(state_test_group) -> None:
    state = _base_state()
    _, result = state_test_group(
        "transactions/arbitration/resolve_dispute.json",
        "resolve_dispute_unknown_escrow",
        state,
        _resolve(state, OWNER, BOB, escrow_id=9),
    )

    assert result.error.code.name == "ESCROW_NOT_FOUND"


def test_resolve_dispute_uses_stored_fee() -> None:
    """The fee charged at creation is paid out even if the rate changed since."""
    state = _base_state()
    state.global_state.platform_fee_rate = 1_000

    post, result = apply_tx(state, _resolve(state, OWNER, BOB))

    assert result.ok
    assert balance_of(post, OWNER) == FEE


def test_resolve_dispute_owner_as_buyer() -> None:
    """The owner may arbitrate an escrow in which it is the buyer."""
    state = _base_state()
    state.escrows[1].buyer = OWNER

    post, result = apply_tx(state, _resolve(state, OWNER, OWNER))

    assert result.ok
    assert balance_of(post, OWNER) == AMOUNT + FEE


def test_resolved_escrow_is_final() -> None:
    state = _base_state()
    state, result = apply_tx(state, _resolve(state, OWNER, BOB))
    assert result.ok

    _, result = apply_tx(state, _resolve(state, OWNER, ALICE))
    assert result.error.code.name == "INVALID_STATUS"

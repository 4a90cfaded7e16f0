"""Structured event records emitted by successful escrow transactions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .encoding import tx_hash
from .types import ChainState, Transaction, TransactionType

EVENT_NAMES = {
    TransactionType.CREATE_ESCROW: "escrow-created",
    TransactionType.CONFIRM_DELIVERY: "delivery-confirmed",
    TransactionType.RELEASE_FUNDS: "funds-released",
    TransactionType.REFUND_ESCROW: "escrow-refunded",
    TransactionType.DISPUTE_ESCROW: "escrow-disputed",
    TransactionType.RESOLVE_DISPUTE: "dispute-resolved",
    TransactionType.SET_PLATFORM_FEE_RATE: "fee-rate-updated",
}


@dataclass
class EscrowEvent:
    name: str
    tx_hash: bytes
    escrow_id: Optional[int] = None
    fields: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "tx_hash": self.tx_hash.hex(),
            "escrow_id": self.escrow_id,
            "fields": {
                k: v.hex() if isinstance(v, bytes) else v for k, v in self.fields.items()
            },
        }


def build_event(tx: Transaction, pre_state: ChainState, post_state: ChainState) -> EscrowEvent:
    """Describe a committed transaction from the states around it."""
    name = EVENT_NAMES[tx.tx_type]
    h = tx_hash(tx)

    if tx.tx_type == TransactionType.SET_PLATFORM_FEE_RATE:
        return EscrowEvent(
            name=name,
            tx_hash=h,
            fields={
                "old_rate": pre_state.global_state.platform_fee_rate,
                "new_rate": post_state.global_state.platform_fee_rate,
            },
        )

    if tx.tx_type == TransactionType.CREATE_ESCROW:
        escrow_id = post_state.global_state.escrow_counter
    else:
        escrow_id = tx.payload["escrow_id"]
    escrow = post_state.escrows[escrow_id]

    fields: dict[str, Any] = {"caller": tx.source, "status": escrow.status.name.lower()}
    if tx.tx_type == TransactionType.CREATE_ESCROW:
        fields.update(
            buyer=escrow.buyer,
            seller=escrow.seller,
            amount=escrow.amount,
            fee=escrow.fee,
            timeout_height=escrow.timeout_height,
        )
    elif tx.tx_type == TransactionType.RESOLVE_DISPUTE:
        fields["winner"] = tx.payload["winner"]
    return EscrowEvent(name=name, tx_hash=h, escrow_id=escrow_id, fields=fields)

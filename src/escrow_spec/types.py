"""Core types for the escrow engine specs.

The ledger tracks plain account balances, the escrow arena and the
process-wide `GlobalState`. Custodied value is held by the account at
`config.CUSTODY_ADDRESS`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, Flag, IntEnum, auto

from .config import DEFAULT_PLATFORM_FEE_RATE


class TransactionType(Enum):
    CREATE_ESCROW = "create_escrow"
    CONFIRM_DELIVERY = "confirm_delivery"
    RELEASE_FUNDS = "release_funds"
    REFUND_ESCROW = "refund_escrow"
    DISPUTE_ESCROW = "dispute_escrow"
    RESOLVE_DISPUTE = "resolve_dispute"
    SET_PLATFORM_FEE_RATE = "set_platform_fee_rate"


class EscrowStatus(IntEnum):
    ACTIVE = 0
    DELIVERED = 1
    RELEASED = 2
    REFUNDED = 3
    DISPUTED = 4

    @property
    def is_terminal(self) -> bool:
        return self in (EscrowStatus.RELEASED, EscrowStatus.REFUNDED)


class Role(Flag):
    """Roles a caller holds with respect to one escrow at the current height."""
    NONE = 0
    BUYER = auto()
    SELLER = auto()
    OWNER = auto()
    ANY = auto()  # granted to every caller once the escrow timeout has passed


@dataclass
class Transaction:
    chain_id: int
    source: bytes
    tx_type: TransactionType
    payload: dict
    nonce: int


@dataclass
class AccountState:
    address: bytes
    balance: int = 0
    nonce: int = 0


@dataclass
class EscrowRecord:
    id: int
    buyer: bytes
    seller: bytes
    amount: int
    fee: int
    timeout_height: int
    status: EscrowStatus = EscrowStatus.ACTIVE
    description: str = ""
    created_height: int = 0

    @property
    def total(self) -> int:
        return self.amount + self.fee


@dataclass
class GlobalState:
    """Process-wide escrow state.

    A fresh ledger starts with no escrows (`escrow_counter == 0`, so the first
    escrow gets id 1) and the default platform fee rate. Only
    `platform_owner` may change `platform_fee_rate`.
    """
    escrow_counter: int = 0
    platform_fee_rate: int = DEFAULT_PLATFORM_FEE_RATE
    platform_owner: bytes = field(default_factory=lambda: bytes(32))
    block_height: int = 0


@dataclass
class ChainState:
    accounts: dict[bytes, AccountState] = field(default_factory=dict)
    global_state: GlobalState = field(default_factory=GlobalState)
    network_chain_id: int = 0
    # Append-only arena keyed by sequential id; records are updated in place.
    escrows: dict[int, EscrowRecord] = field(default_factory=dict)
    escrow_fees: dict[int, int] = field(default_factory=dict)

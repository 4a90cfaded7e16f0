"""Helpers to serialize/deserialize escrow engine fixtures."""

from __future__ import annotations

from typing import Any

from escrow_spec.types import (
    AccountState,
    ChainState,
    EscrowRecord,
    EscrowStatus,
    Transaction,
    TransactionType,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def state_to_json(state: ChainState) -> dict[str, Any]:
    gs = state.global_state
    result: dict[str, Any] = {
        "network_chain_id": state.network_chain_id,
        "global_state": {
            "escrow_counter": gs.escrow_counter,
            "platform_fee_rate": gs.platform_fee_rate,
            "platform_owner": _bytes_to_hex(gs.platform_owner),
            "block_height": gs.block_height,
        },
        "accounts": [
            {
                "address": _bytes_to_hex(a.address),
                "balance": a.balance,
                "nonce": a.nonce,
            }
            for a in state.accounts.values()
        ],
    }

    if state.escrows:
        result["escrows"] = [
            {
                "id": e.id,
                "buyer": _bytes_to_hex(e.buyer),
                "seller": _bytes_to_hex(e.seller),
                "amount": e.amount,
                "fee": state.escrow_fees.get(e.id, e.fee),
                "timeout_height": e.timeout_height,
                "status": int(e.status),
                "description": e.description,
                "created_height": e.created_height,
            }
            for e in state.escrows.values()
        ]

    return result


def state_from_json(data: dict[str, Any]) -> ChainState:
    state = ChainState(network_chain_id=data["network_chain_id"])
    gs = data.get("global_state", {})
    state.global_state.escrow_counter = gs.get("escrow_counter", 0)
    state.global_state.platform_fee_rate = gs.get(
        "platform_fee_rate", state.global_state.platform_fee_rate
    )
    if gs.get("platform_owner"):
        state.global_state.platform_owner = _hex_to_bytes(gs["platform_owner"])
    state.global_state.block_height = gs.get("block_height", 0)

    for a in data.get("accounts", []):
        acct = AccountState(
            address=_hex_to_bytes(a["address"]),
            balance=a.get("balance", 0),
            nonce=a.get("nonce", 0),
        )
        state.accounts[acct.address] = acct

    for e in data.get("escrows", []):
        record = EscrowRecord(
            id=e["id"],
            buyer=_hex_to_bytes(e["buyer"]),
            seller=_hex_to_bytes(e["seller"]),
            amount=e["amount"],
            fee=e.get("fee", 0),
            timeout_height=e.get("timeout_height", 0),
            status=EscrowStatus(e.get("status", 0)),
            description=e.get("description", ""),
            created_height=e.get("created_height", 0),
        )
        state.escrows[record.id] = record
        state.escrow_fees[record.id] = record.fee

    return state


_BYTES_FIELDS: set[str] = {"seller", "winner"}


def tx_to_json(tx: Transaction) -> dict[str, Any]:
    payload: Any = tx.payload
    if isinstance(payload, dict):
        payload = {
            k: _bytes_to_hex(bytes(v)) if isinstance(v, (bytes, bytearray)) else v
            for k, v in payload.items()
        }
    return {
        "chain_id": tx.chain_id,
        "source": _bytes_to_hex(tx.source),
        "tx_type": tx.tx_type.value,
        "payload": payload,
        "nonce": tx.nonce,
    }


def tx_from_json(data: dict[str, Any]) -> Transaction:
    payload = data.get("payload")
    if isinstance(payload, dict):
        payload = {
            k: _hex_to_bytes(v) if k in _BYTES_FIELDS and isinstance(v, str) and v else v
            for k, v in payload.items()
        }
    return Transaction(
        chain_id=data["chain_id"],
        source=_hex_to_bytes(data["source"]),
        tx_type=TransactionType(data["tx_type"]),
        payload=payload,
        nonce=data["nonce"],
    )

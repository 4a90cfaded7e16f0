"""Canonical state digest implementation (v1)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _address(value: str | None) -> bytes:
    addr = _hex_to_bytes(value)
    if len(addr) != 32:
        raise ValueError(f"address must be 32 bytes, got {len(addr)}")
    return addr


def compute_state_digest(post_state: dict[str, Any]) -> str:
    """Compute state digest v1 from a JSON state (see tools/fixtures_io.py).

    Global fields, accounts sorted by address and escrows sorted by id are
    encoded in canonical order and hashed with BLAKE3-256.
    """
    gs = post_state.get("global_state", {}) if isinstance(post_state, dict) else {}
    buf = bytearray()
    for field in ("escrow_counter", "platform_fee_rate", "block_height"):
        buf += _u64_be(int(gs.get(field, 0)))
    buf += _address(gs.get("platform_owner", "00" * 32))

    accounts = post_state.get("accounts", []) if isinstance(post_state, dict) else []
    sortable = sorted(((_address(acc.get("address")), acc) for acc in accounts), key=lambda x: x[0])
    buf += _u64_be(len(sortable))
    for addr, acc in sortable:
        buf += addr
        for field in ("balance", "nonce"):
            buf += _u64_be(int(acc.get(field, 0)))

    escrows = post_state.get("escrows", []) if isinstance(post_state, dict) else []
    buf += _u64_be(len(escrows))
    for e in sorted(escrows, key=lambda x: int(x["id"])):
        buf += _u64_be(int(e["id"]))
        buf += _address(e["buyer"])
        buf += _address(e["seller"])
        for field in ("amount", "fee", "timeout_height", "status", "created_height"):
            buf += _u64_be(int(e.get(field, 0)))
        description = str(e.get("description", "")).encode("utf-8")
        buf += _u64_be(len(description))
        buf += description

    return blake3(buf).hexdigest()

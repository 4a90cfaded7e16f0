"""Wire-format encoding for escrow transactions."""

from __future__ import annotations

from dataclasses import dataclass

from blake3 import blake3

from .config import MAX_DESCRIPTION_LEN
from .errors import ErrorCode, SpecError
from .types import Transaction, TransactionType

TX_TYPE_IDS = {
    TransactionType.CREATE_ESCROW: 0,
    TransactionType.CONFIRM_DELIVERY: 1,
    TransactionType.RELEASE_FUNDS: 2,
    TransactionType.REFUND_ESCROW: 3,
    TransactionType.DISPUTE_ESCROW: 4,
    TransactionType.RESOLVE_DISPUTE: 5,
    TransactionType.SET_PLATFORM_FEE_RATE: 6,
}

_ESCROW_REF_TYPES = frozenset({
    TransactionType.CONFIRM_DELIVERY,
    TransactionType.RELEASE_FUNDS,
    TransactionType.REFUND_ESCROW,
    TransactionType.DISPUTE_ESCROW,
})


@dataclass
class Writer:
    buf: bytearray

    def write_u8(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(1, "big", signed=False))

    def write_u16(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(2, "big", signed=False))

    def write_u64(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(8, "big", signed=False))

    def write_bytes(self, b: bytes) -> None:
        self.buf.extend(b)


def _expect_len(name: str, value: bytes, size: int) -> None:
    if not isinstance(value, (bytes, bytearray)) or len(value) != size:
        raise SpecError(ErrorCode.INVALID_FORMAT, f"{name} must be {size} bytes")


def _write_address(w: Writer, name: str, value: bytes) -> None:
    _expect_len(name, value, 32)
    w.write_bytes(value)


def _write_u8(w: Writer, name: str, value: object) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise SpecError(ErrorCode.INVALID_FORMAT, f"{name} must be an integer")
    try:
        w.write_u8(value)
    except OverflowError as exc:
        raise SpecError(ErrorCode.INVALID_FORMAT, f"{name} out of u8 range") from exc


def _write_u64(w: Writer, name: str, value: object) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise SpecError(ErrorCode.INVALID_FORMAT, f"{name} must be an integer")
    try:
        w.write_u64(value)
    except OverflowError as exc:
        raise SpecError(ErrorCode.INVALID_FORMAT, f"{name} out of u64 range") from exc


def _write_string_u16(w: Writer, value: str) -> None:
    data = value.encode("utf-8")
    if len(data) > MAX_DESCRIPTION_LEN * 4:
        raise SpecError(ErrorCode.INVALID_FORMAT, "string too long")
    w.write_u16(len(data))
    w.write_bytes(data)


def _encode_payload(w: Writer, tx: Transaction) -> None:
    p = tx.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_FORMAT, "payload must be dict")

    tt = tx.tx_type
    if tt == TransactionType.CREATE_ESCROW:
        _write_address(w, "seller", p.get("seller"))
        _write_u64(w, "amount", p.get("amount", 0))
        _write_u64(w, "timeout_blocks", p.get("timeout_blocks", 0))
        description = p.get("description", "")
        if not isinstance(description, str):
            raise SpecError(ErrorCode.INVALID_FORMAT, "description must be a string")
        _write_string_u16(w, description)
    elif tt in _ESCROW_REF_TYPES:
        _write_u64(w, "escrow_id", p.get("escrow_id"))
    elif tt == TransactionType.RESOLVE_DISPUTE:
        _write_u64(w, "escrow_id", p.get("escrow_id"))
        _write_address(w, "winner", p.get("winner"))
    elif tt == TransactionType.SET_PLATFORM_FEE_RATE:
        _write_u64(w, "rate", p.get("rate"))
    else:
        raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"encoding not implemented for {tt}")


def encode_transaction(tx: Transaction) -> bytes:
    w = Writer(bytearray())
    _write_u8(w, "chain_id", tx.chain_id)
    _write_address(w, "source", tx.source)
    w.write_u8(TX_TYPE_IDS[tx.tx_type])
    _write_u64(w, "nonce", tx.nonce)
    _encode_payload(w, tx)
    return bytes(w.buf)


def tx_hash(tx: Transaction) -> bytes:
    """BLAKE3-256 of the wire encoding."""
    return blake3(encode_transaction(tx)).digest()

"""Escrow engine configuration constants.

Protocol constants are module-level values. Deployment parameters (owner,
starting fee rate, chain id) are read through `EngineConfig`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

# Units
U64_MAX = (1 << 64) - 1

# Fees (basis points, 10_000 = 100%)
BPS_DENOMINATOR = 10_000
MAX_PLATFORM_FEE_RATE = 1_000  # 10%
DEFAULT_PLATFORM_FEE_RATE = 250  # 2.5%

# Transaction limits
MAX_NONCE_GAP = 64

# Escrow limits
MAX_DESCRIPTION_LEN = 256

# Account that holds custodied value between creation and settlement.
CUSTODY_ADDRESS = bytes(31) + b"\x01"

# Chain / network
CHAIN_ID_MAINNET = 0
CHAIN_ID_TESTNET = 1
CHAIN_ID_DEVNET = 3
MAX_CHAIN_ID = 0xFF  # encoded as a single byte


def _hex_env(name: str) -> bytes:
    value = os.environ.get(name, "")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    return bytes.fromhex(v)


@dataclass
class EngineConfig:
    """Deployment parameters for a fresh escrow ledger."""
    owner: bytes = field(default_factory=lambda: bytes(32))
    platform_fee_rate: int = DEFAULT_PLATFORM_FEE_RATE
    chain_id: int = CHAIN_ID_DEVNET
    start_height: int = 0

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load configuration from environment variables."""
        config = cls()

        if os.environ.get("ESCROW_OWNER"):
            config.owner = _hex_env("ESCROW_OWNER")
        if len(config.owner) != 32:
            raise ValueError(f"ESCROW_OWNER must be 32 bytes, got {len(config.owner)}")

        config.platform_fee_rate = int(
            os.environ.get("ESCROW_FEE_RATE_BPS", DEFAULT_PLATFORM_FEE_RATE)
        )
        if not 0 <= config.platform_fee_rate <= MAX_PLATFORM_FEE_RATE:
            raise ValueError(
                f"ESCROW_FEE_RATE_BPS must be within [0, {MAX_PLATFORM_FEE_RATE}]"
            )

        config.chain_id = int(os.environ.get("ESCROW_CHAIN_ID", CHAIN_ID_DEVNET))
        if not 0 <= config.chain_id <= MAX_CHAIN_ID:
            raise ValueError(f"ESCROW_CHAIN_ID must be within [0, {MAX_CHAIN_ID}]")

        config.start_height = int(os.environ.get("ESCROW_START_HEIGHT", 0))
        return config

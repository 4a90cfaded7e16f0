"""Deployment configuration and genesis specs."""

from __future__ import annotations

import pytest

from escrow_spec.config import (
    CHAIN_ID_DEVNET,
    CHAIN_ID_TESTNET,
    CUSTODY_ADDRESS,
    DEFAULT_PLATFORM_FEE_RATE,
    EngineConfig,
)
from escrow_spec.state_transition import advance_height, genesis_state
from escrow_spec.test_accounts import ALICE, OWNER

_ENV_VARS = ("ESCROW_OWNER", "ESCROW_FEE_RATE_BPS", "ESCROW_CHAIN_ID", "ESCROW_START_HEIGHT")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_from_env_defaults() -> None:
    config = EngineConfig.from_env()

    assert config.owner == bytes(32)
    assert config.platform_fee_rate == DEFAULT_PLATFORM_FEE_RATE
    assert config.chain_id == CHAIN_ID_DEVNET
    assert config.start_height == 0


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ESCROW_OWNER", "0x" + OWNER.hex())
    monkeypatch.setenv("ESCROW_FEE_RATE_BPS", "400")
    monkeypatch.setenv("ESCROW_CHAIN_ID", str(CHAIN_ID_TESTNET))
    monkeypatch.setenv("ESCROW_START_HEIGHT", "1200")

    config = EngineConfig.from_env()

    assert config.owner == OWNER
    assert config.platform_fee_rate == 400
    assert config.chain_id == CHAIN_ID_TESTNET
    assert config.start_height == 1200


def test_from_env_rejects_short_owner(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ESCROW_OWNER", "abcd")
    with pytest.raises(ValueError, match="ESCROW_OWNER"):
        EngineConfig.from_env()


def test_from_env_rejects_rate_above_cap(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ESCROW_FEE_RATE_BPS", "1001")
    with pytest.raises(ValueError, match="ESCROW_FEE_RATE_BPS"):
        EngineConfig.from_env()


def test_genesis_state() -> None:
    config = EngineConfig(owner=OWNER, platform_fee_rate=100, start_height=7)
    state = genesis_state(config, {ALICE: 500})

    assert state.network_chain_id == CHAIN_ID_DEVNET
    assert state.global_state.platform_owner == OWNER
    assert state.global_state.platform_fee_rate == 100
    assert state.global_state.block_height == 7
    assert state.global_state.escrow_counter == 0
    assert state.accounts[ALICE].balance == 500
    assert CUSTODY_ADDRESS not in state.accounts
    assert state.escrows == {}


def test_advance_height() -> None:
    state = genesis_state(EngineConfig(start_height=3))

    assert advance_height(state).global_state.block_height == 4
    assert advance_height(state, 10).global_state.block_height == 13
    assert advance_height(state, 0).global_state.block_height == 3
    assert state.global_state.block_height == 3
    with pytest.raises(ValueError):
        advance_height(state, -1)


@pytest.mark.parametrize("value", ["256", "-1"])
def test_from_env_rejects_chain_id_outside_byte(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("ESCROW_CHAIN_ID", value)
    with pytest.raises(ValueError, match="ESCROW_CHAIN_ID"):
        EngineConfig.from_env()


def test_from_env_accepts_max_chain_id(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ESCROW_CHAIN_ID", "255")

    assert EngineConfig.from_env().chain_id == 255

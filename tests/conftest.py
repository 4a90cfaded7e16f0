"""Pytest hooks to generate fixtures while asserting on engine behaviour."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from escrow_spec.encoding import encode_transaction
from escrow_spec.errors import SpecError
from escrow_spec.state_transition import TransitionResult, apply_block, apply_tx
from escrow_spec.types import ChainState, Transaction
from tools.fixtures_io import state_to_json, tx_to_json

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}


def _try_wire_hex(tx: Transaction) -> str:
    """Wire hex of the tx, or empty string for payloads with no wire form."""
    try:
        return encode_transaction(tx).hex()
    except SpecError:
        return ""


def _tx_json(tx: Transaction) -> dict[str, Any]:
    tx_json = tx_to_json(tx)
    tx_json["wire_hex"] = _try_wire_hex(tx)
    return tx_json


def _expected(result: TransitionResult, post_state: ChainState) -> dict[str, Any]:
    return {
        "ok": result.ok,
        "error": result.error.code.name if result.error else None,
        "events": [e.to_json() for e in result.events],
        "post_state": state_to_json(post_state),
    }


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )


StateTest = Callable[[str, str, ChainState, Transaction], tuple[ChainState, TransitionResult]]
BlockTest = Callable[
    [str, str, ChainState, list[Transaction]], tuple[ChainState, TransitionResult]
]


@pytest.fixture
def state_test_group() -> StateTest:
    """Apply a tx, collect the case under a fixture path and return the outcome."""

    def _state_test_group(
        rel_path: str, name: str, pre_state: ChainState, tx: Transaction
    ) -> tuple[ChainState, TransitionResult]:
        pre_json = state_to_json(pre_state)
        post_state, result = apply_tx(pre_state, tx)
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": pre_json,
                "tx": _tx_json(tx),
                "expected": _expected(result, post_state),
            }
        )
        return post_state, result

    return _state_test_group


@pytest.fixture
def block_test_group() -> BlockTest:
    """Apply a block of txs, collect the case and return the outcome."""

    def _block_test_group(
        rel_path: str, name: str, pre_state: ChainState, txs: list[Transaction]
    ) -> tuple[ChainState, TransitionResult]:
        pre_json = state_to_json(pre_state)
        post_state, result = apply_block(pre_state, txs)
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": pre_json,
                "txs": [_tx_json(tx) for tx in txs],
                "expected": _expected(result, post_state),
            }
        )
        return post_state, result

    return _block_test_group


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"cases": cases}, indent=2))

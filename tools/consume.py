"""Consume fixtures and validate them against the escrow engine."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from escrow_spec.state_transition import TransitionResult, apply_block, apply_tx  # noqa: E402
from escrow_spec.types import ChainState  # noqa: E402
from fixtures_io import state_from_json, state_to_json, tx_from_json  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def compare_case(
    name: str, result: TransitionResult, post_state: ChainState, expected: dict[str, Any]
) -> list[str]:
    """Mismatches between a replayed case and its recorded expectation.

    The post-state is always checked through the state digest, so every
    account, every escrow field and the stored fees take part.
    """
    if result.ok != expected["ok"]:
        return [f"{name}: ok_mismatch"]

    actual_err = result.error.code.name if result.error else None
    if actual_err != expected["error"]:
        return [f"{name}: error_mismatch ({actual_err} != {expected['error']})"]

    expected_digest = expected.get("state_digest")
    if expected_digest is None:
        expected_digest = compute_state_digest(expected["post_state"])
    if compute_state_digest(state_to_json(post_state)) != expected_digest:
        return [f"{name}: state_digest_mismatch"]

    if "events" in expected and [e.to_json() for e in result.events] != expected["events"]:
        return [f"{name}: events_mismatch"]
    return []


def _check_cases(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())

    for case in data.get("cases", []):
        pre_state = state_from_json(case["pre_state"])
        if "txs" in case:
            txs = [tx_from_json(t) for t in case["txs"]]
            post_state, result = apply_block(pre_state, txs)
        else:
            post_state, result = apply_tx(pre_state, tx_from_json(case["tx"]))
        failures.extend(compare_case(case["name"], result, post_state, case["expected"]))

    return failures


def main() -> None:
    fixtures = ROOT / "fixtures"
    if not fixtures.exists():
        logger.error("no fixtures at %s, run tools/fill.py first", fixtures)
        raise SystemExit(1)

    failures: list[str] = []
    count = 0
    for path in sorted(fixtures.rglob("*.json")):
        count += 1
        failures.extend(_check_cases(path))

    if failures:
        for f in failures:
            logger.error("FAIL %s", f)
        raise SystemExit(1)

    logger.info("All fixtures passed (%d files)", count)


if __name__ == "__main__":
    main()

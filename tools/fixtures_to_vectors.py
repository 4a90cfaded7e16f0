#!/usr/bin/env python3
"""Convert generated fixtures into client-consumable YAML vectors.

Each fixture case becomes a vector carrying the numeric error code, the wire
encoding of its transaction(s) and the digest of the expected post-state.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.encoding import encode_transaction  # noqa: E402
from escrow_spec.errors import ErrorCode, SpecError  # noqa: E402
from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from fixtures_io import tx_from_json  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


class VectorDumper(yaml.SafeDumper):
    """Tag-free YAML; descriptions with newlines keep block style."""


def _str_representer(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    style = "|" if "\n" in data else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


def _bytes_representer(dumper: yaml.SafeDumper, data: bytes) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data.hex())


VectorDumper.add_representer(str, _str_representer)
VectorDumper.add_representer(bytes, _bytes_representer)


def dump_vectors(vectors: list[dict[str, Any]]) -> str:
    return yaml.dump(
        {"test_vectors": vectors}, Dumper=VectorDumper, sort_keys=False, width=4096
    )


def _map_error_code(name: str | None) -> int:
    if not name:
        return int(ErrorCode.SUCCESS)
    try:
        return int(ErrorCode[name])
    except KeyError:
        return int(ErrorCode.UNKNOWN)


def _encode_tx_if_possible(tx: dict[str, Any]) -> str:
    try:
        return encode_transaction(tx_from_json(tx)).hex()
    except SpecError as exc:
        # Negative cases may carry payloads that have no wire form.
        logger.debug("no wire encoding for tx: %s", exc)
        return ""


def case_to_vector(case: dict[str, Any]) -> dict[str, Any]:
    expected = case.get("expected", {})
    post_state = expected.get("post_state")
    if "txs" in case:
        kind = "block"
        wire = [_encode_tx_if_possible(t) for t in case["txs"]]
    else:
        kind = "tx"
        wire = [_encode_tx_if_possible(case["tx"])]

    vector: dict[str, Any] = {
        "name": case.get("name", ""),
        "pre_state": case.get("pre_state"),
    }
    if not all(wire):
        vector["runnable"] = False
    vector.update(
        {
            "input": {"kind": kind, "wire_hex": wire},
            "expected": {
                "success": bool(expected.get("ok", False)),
                "error_code": _map_error_code(expected.get("error")),
                "state_digest": compute_state_digest(post_state) if post_state else "",
                "post_state": post_state,
            },
        }
    )
    return vector


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert fixtures to vectors")
    parser.add_argument("--fixtures", default=str(ROOT / "fixtures"))
    parser.add_argument("--vectors", default=str(ROOT / "vectors"))
    args = parser.parse_args()

    fixtures = Path(args.fixtures).resolve()
    vectors = Path(args.vectors).resolve()

    if not fixtures.exists():
        raise SystemExit(f"fixtures dir not found: {fixtures}")

    count = 0
    for path in sorted(fixtures.rglob("*.json")):
        data = json.loads(path.read_text())
        cases = data.get("cases") if isinstance(data, dict) else None
        if not isinstance(cases, list):
            continue
        dest = (vectors / path.relative_to(fixtures)).with_suffix(".yaml")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(dump_vectors([case_to_vector(c) for c in cases]))
        count += 1

    logger.info("Written %d vector files into %s", count, vectors)


if __name__ == "__main__":
    main()

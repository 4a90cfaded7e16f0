"""Generate JSON fixtures from the test suite, optionally followed by vectors.

Extra arguments after ``--`` are passed to pytest, e.g.
``tools/fill.py -- -k refund`` fills only the refund cases.
"""

from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Fill escrow fixtures")
    parser.add_argument("--output", default=str(ROOT / "fixtures"))
    parser.add_argument(
        "--vectors", action="store_true", help="also convert fixtures to YAML vectors"
    )
    parser.add_argument("pytest_args", nargs="*")
    args = parser.parse_args()

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])

    cmd = [
        sys.executable,
        "-m",
        "pytest",
        str(ROOT / "tests"),
        "-q",
        "--output",
        args.output,
        *args.pytest_args,
    ]
    logger.info("Running: %s", " ".join(cmd))
    rc = subprocess.call(cmd, env=env, cwd=str(ROOT))
    if rc != 0 or not args.vectors:
        return rc

    return subprocess.call(
        [sys.executable, str(ROOT / "tools" / "fixtures_to_vectors.py"), "--fixtures", args.output],
        env=env,
        cwd=str(ROOT),
    )


if __name__ == "__main__":
    raise SystemExit(main())

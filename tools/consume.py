"""Replay filled fixtures against the Python state machine."""

from __future__ import annotations

import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from htlc_spec.state_digest import compute_state_digest  # noqa: E402
from htlc_spec.state_transition import execute  # noqa: E402
from fixtures_io import call_from_json, store_from_json, store_to_json  # noqa: E402


def _transfer_json(result) -> dict | None:
    if result.transfer is None:
        return None
    return {
        "destination": result.transfer.destination,
        "amount": result.transfer.amount,
        "kind": result.transfer.kind.value,
    }


def check_state_cases(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())

    for case in data.get("cases", []):
        store = store_from_json(case["pre_state"])
        result = execute(store, call_from_json(case["call"]))

        expected = case["expected"]
        if result.ok != expected["ok"]:
            failures.append(f"{case['name']}: ok_mismatch")
            continue

        actual_err = result.error.code.name if result.error else None
        if actual_err != expected["error"]:
            failures.append(f"{case['name']}: error_mismatch ({actual_err} != {expected['error']})")
            continue

        if _transfer_json(result) != expected.get("transfer"):
            failures.append(f"{case['name']}: transfer_mismatch")
            continue

        if store_to_json(store) != expected["post_state"]:
            failures.append(f"{case['name']}: post_state_mismatch")
            continue

        if compute_state_digest(store) != expected["state_digest"]:
            failures.append(f"{case['name']}: state_digest_mismatch")

    return failures


def main() -> None:
    fixtures = ROOT / "fixtures"
    if not fixtures.exists():
        raise SystemExit(f"fixtures dir not found: {fixtures}")

    failures: list[str] = []
    checked = 0
    for path in sorted(fixtures.rglob("*.json")):
        data = json.loads(path.read_text())
        if "cases" not in data:
            continue
        checked += len(data["cases"])
        failures.extend(f"{path.relative_to(fixtures)}: {f}" for f in check_state_cases(path))

    if failures:
        for f in failures:
            print("FAIL", f)
        raise SystemExit(1)

    print(f"All {checked} fixture cases passed")


if __name__ == "__main__":
    main()

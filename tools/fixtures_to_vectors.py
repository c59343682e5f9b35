#!/usr/bin/env python3
"""Convert filled fixtures into harness-consumable YAML suites.

State cases become runnable vectors (pre-state, call, expected outcome with
numeric error code and post-state digest). Pre-built ``test_vectors`` files
are mirrored as-is.
"""

from __future__ import annotations

import argparse
import json
import shutil
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from htlc_spec.errors import ErrorCode  # noqa: E402
from yaml_dump import write_yaml  # noqa: E402

MAPPING = {
    "crypto": "crypto",
    "htlc": "execution/htlc",
}

# Cases whose outcome depends on the ledger host (balances, address format)
# and cannot be replayed through /call/execute.
HOST_ONLY_SKIP: set[str] = {
    "ledger_initiate_insufficient_balance",
}


def map_dest(rel: Path) -> Path:
    if not rel.parts:
        return Path("unmapped")
    mapped = MAPPING.get(rel.parts[0])
    if not mapped:
        return Path("unmapped") / rel
    return Path(mapped) / Path(*rel.parts[1:])


def map_error_code(name: str | None) -> int:
    if not name:
        return int(ErrorCode.SUCCESS)
    try:
        return int(ErrorCode[name])
    except KeyError:
        return int(ErrorCode.UNKNOWN)


def case_to_vector(case: dict[str, Any]) -> dict[str, Any]:
    expected = case.get("expected", {})
    vec: dict[str, Any] = {
        "name": case.get("name", ""),
        "description": case.get("description", ""),
        "pre_state": case.get("pre_state"),
    }
    if case.get("runnable") is False or vec["name"] in HOST_ONLY_SKIP:
        vec["runnable"] = False
    vec["input"] = {"kind": "call", "call": case.get("call")}
    vec["expected"] = {
        "success": bool(expected.get("ok", False)),
        "error_code": map_error_code(expected.get("error")),
        "transfer": expected.get("transfer"),
        "state_digest": expected.get("state_digest", ""),
    }
    return vec


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert fixtures to vectors")
    parser.add_argument("--fixtures", default=str(ROOT / "fixtures"))
    parser.add_argument("--vectors", default=str(ROOT / "vectors"))
    args = parser.parse_args()

    fixtures = Path(args.fixtures).resolve()
    vectors = Path(args.vectors).resolve()

    if not fixtures.exists():
        raise SystemExit(f"fixtures dir not found: {fixtures}")

    vectors.mkdir(parents=True, exist_ok=True)
    old_files = {p.resolve() for p in vectors.rglob("*") if p.is_file()}
    written: set[Path] = set()

    count = 0
    for path in sorted(fixtures.rglob("*.json")):
        rel = path.relative_to(fixtures)
        dest = vectors / map_dest(rel)
        dest.parent.mkdir(parents=True, exist_ok=True)
        data = json.loads(path.read_text())

        if isinstance(data, dict) and isinstance(data.get("cases"), list):
            dest = dest.with_suffix(".yaml")
            write_yaml(dest, {"test_vectors": [case_to_vector(c) for c in data["cases"]]})
        else:
            shutil.copy2(path, dest)
        written.add(dest.resolve())
        count += 1

    # Only generated subdirectories are pruned.
    generated_prefixes = tuple(str(vectors / p) for p in (*MAPPING.values(), "unmapped"))
    removed = 0
    for old in sorted(old_files - written):
        if str(old).startswith(generated_prefixes):
            old.unlink()
            removed += 1
    for d in sorted(vectors.rglob("*"), reverse=True):
        if d.is_dir() and not any(d.iterdir()):
            d.rmdir()

    print(f"Written {count} vector files into {vectors}")
    if removed:
        print(f"Removed {removed} stale files")


if __name__ == "__main__":
    main()

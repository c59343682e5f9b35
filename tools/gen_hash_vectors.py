"""Generate SHA-256 and hash-lock YAML vectors."""

from __future__ import annotations

from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from htlc_spec.crypto.hash_vectors import hashlock_vectors, sha256_vectors  # noqa: E402
from yaml_dump import prune, write_yaml  # noqa: E402


def main() -> None:
    out = ROOT / "fixtures" / "crypto"
    out.mkdir(parents=True, exist_ok=True)

    write_yaml(out / "sha256.yaml", prune(sha256_vectors()))
    write_yaml(out / "hashlock.yaml", hashlock_vectors())


if __name__ == "__main__":
    main()

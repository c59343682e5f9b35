"""Pytest hooks to generate fixtures while the tests run."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from htlc_spec.config import COIN_VALUE
from htlc_spec.crypto.hash_algorithms import hashlock_for
from htlc_spec.state_digest import compute_state_digest
from htlc_spec.state_transition import CallResult, execute
from htlc_spec.store import MemorySwapStore
from htlc_spec.test_accounts import ALICE, BOB, SECRETS
from htlc_spec.types import Call, Swap
from tools.fixtures_io import call_to_json, store_to_json

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}
_VECTOR_CASES: dict[str, list[dict[str, Any]]] = {}

# Host time used by most cases
NOW = 1_700_000_000
HOUR = 3600


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )


@pytest.fixture
def now() -> int:
    return NOW


@pytest.fixture
def store() -> MemorySwapStore:
    return MemorySwapStore()


@pytest.fixture
def secret() -> bytes:
    return SECRETS[0]


@pytest.fixture
def hashlock(secret: bytes) -> str:
    return hashlock_for(secret)


@pytest.fixture
def open_swap(store: MemorySwapStore, hashlock: str) -> Swap:
    """An OPEN swap from ALICE to BOB, one hour from NOW."""
    swap = Swap(
        id=hashlock,
        sender=ALICE,
        recipient=BOB,
        amount=COIN_VALUE,
        hashlock=hashlock,
        expiration=NOW + HOUR,
        created_at=NOW,
    )
    store.insert(swap)
    return swap


@pytest.fixture
def state_test_group() -> Callable[[str, str, MemorySwapStore, Call], CallResult]:
    """Run a call against ``store`` and collect it as a fixture case.

    The store is mutated in place; the result is returned for assertions.
    """

    def _state_test_group(
        rel_path: str, name: str, store: MemorySwapStore, call: Call
    ) -> CallResult:
        pre_state = store_to_json(store)
        result = execute(store, call)
        transfer = None
        if result.transfer is not None:
            transfer = {
                "destination": result.transfer.destination,
                "amount": result.transfer.amount,
                "kind": result.transfer.kind.value,
            }
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": pre_state,
                "call": call_to_json(call),
                "expected": {
                    "ok": result.ok,
                    "error": result.error.code.name if result.error else None,
                    "transfer": transfer,
                    "post_state": store_to_json(store),
                    "state_digest": compute_state_digest(store),
                },
            }
        )
        return result

    return _state_test_group


@pytest.fixture
def vector_test_group() -> Callable[[str, dict[str, Any]], None]:
    """Collect pre-built test_vectors under a specific fixture path."""

    def _vector_test_group(rel_path: str, vector: dict[str, Any]) -> None:
        _VECTOR_CASES.setdefault(rel_path, []).append(vector)

    return _vector_test_group


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

    for rel_path, vectors in _VECTOR_CASES.items():
        if not vectors:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"test_vectors": vectors}, indent=2))

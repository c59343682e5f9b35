"""SHA-256 and hash-lock vectors."""

from __future__ import annotations

import pytest

from htlc_spec.crypto.hash_algorithms import (
    ASSIGNMENTS,
    format_commitment,
    generate_secret,
    hashlock_for,
    parse_commitment,
)
from htlc_spec.crypto.hash_vectors import hashlock_vectors, sha256_vectors
from htlc_spec.crypto.sha256 import sha256


def _emit_hash_vectors(vector_test_group, rel_path: str, algorithm: str, payload: dict) -> None:
    for item in payload.get("test_vectors", []):
        vector_test_group(
            rel_path,
            {
                "name": f"{algorithm.lower()}_{item['name']}",
                "description": item.get("description") or "",
                "input": {
                    "kind": "hash",
                    "algorithm": algorithm,
                    "input_hex": item["input_hex"],
                    "input_ascii": item.get("input_ascii"),
                    "input_length": item["input_length"],
                },
                "expected": {"digest_hex": item["expected_hex"]},
            },
        )


def test_crypto_sha256_vectors(vector_test_group) -> None:
    payload = sha256_vectors(include_large=False)
    for item in payload["test_vectors"]:
        assert sha256(bytes.fromhex(item["input_hex"])).hex() == item["expected_hex"], item["name"]
    _emit_hash_vectors(vector_test_group, "crypto/sha256.json", "SHA256", payload)


def test_crypto_hashlock_vectors(vector_test_group) -> None:
    for item in hashlock_vectors()["test_vectors"]:
        secret = bytes.fromhex(item["secret_hex"][2:])
        assert hashlock_for(secret) == item["hashlock"]
        vector_test_group(
            "crypto/hashlock.json",
            {
                "name": f"hashlock_{item['name']}",
                "description": item["description"],
                "input": {"kind": "hashlock", "secret_hex": item["secret_hex"]},
                "expected": {"hashlock": item["hashlock"]},
            },
        )


def test_sha256_vector_set_shape() -> None:
    payload = sha256_vectors()
    assert payload["output_size"] == 32
    assert payload["block_size"] == 64
    names = [v["name"] for v in payload["test_vectors"]]
    assert len(names) == len(set(names))
    assert "million_a" in names
    assert "million_a" not in [v["name"] for v in sha256_vectors(include_large=False)["test_vectors"]]


def test_hash_assignments() -> None:
    by_purpose = {a.purpose: a for a in ASSIGNMENTS}
    assert by_purpose["hashlock"].algorithm == "SHA-256"
    assert by_purpose["state_digest"].algorithm == "BLAKE3"
    assert all(a.output_size == 32 for a in ASSIGNMENTS)


@pytest.mark.slow
def test_sha256_million_a() -> None:
    assert (
        sha256(b"a" * 1_000_000).hex()
        == "cdc76e5c9914fb9281a1c7e284d73e67f1809a48a497200e046d39ccc7112cd0"
    )


def test_generate_secret_pairs_with_hashlock() -> None:
    secret, hashlock = generate_secret()
    assert len(secret) == 32
    assert hashlock == hashlock_for(secret)
    assert parse_commitment(hashlock) == sha256(secret)
    assert generate_secret()[0] != secret


def test_format_commitment_length() -> None:
    assert format_commitment(bytes(32)) == "0x" + "00" * 32
    with pytest.raises(ValueError):
        format_commitment(bytes(20))

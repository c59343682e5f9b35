"""SHA-256 and hash-lock test vector generators.

Published vectors carry their expected digests verbatim from FIPS 180-4 /
NIST CSHA examples. Boundary vectors take their expected digest from
``hashlib``, an implementation independent of ``crypto.sha256``.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class HashVector:
    name: str
    description: Optional[str]
    input_hex: str
    input_ascii: Optional[str]
    input_length: int
    expected_hex: str


@dataclass
class _Published:
    name: str
    description: str
    data: bytes
    expected_hex: str


PUBLISHED_SHA256 = [
    _Published(
        "empty_string",
        "FIPS 180-4 empty message",
        b"",
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
    ),
    _Published(
        "abc",
        "FIPS 180-4 one-block message",
        b"abc",
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad",
    ),
    _Published(
        "nist_448_bits",
        "FIPS 180-4 two-block message (448 bits)",
        b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq",
        "248d6a61d20638b8e5c026930c3e6039a33ce45964ff2167f6ecedd419db06c1",
    ),
    _Published(
        "nist_896_bits",
        "NIST 896-bit message",
        b"abcdefghbcdefghicdefghijdefghijkefghijklfghijklmghijklmn"
        b"hijklmnoijklmnopjklmnopqklmnopqrlmnopqrsmnopqrstnopqrstu",
        "cf5b16a778af8380036ce59e7b0492370b249b11e8f07a51afac45037afee9d1",
    ),
    _Published(
        "million_a",
        "NIST one million repetitions of 'a'",
        b"a" * 1_000_000,
        "cdc76e5c9914fb9281a1c7e284d73e67f1809a48a497200e046d39ccc7112cd0",
    ),
]


def _sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _ascii_or_none(data: bytes) -> Optional[str]:
    if len(data) > 128:
        return None
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError:
        return None
    return text if text.isprintable() else None


def _vector(name: str, description: Optional[str], data: bytes, expected_hex: str) -> HashVector:
    return HashVector(
        name=name,
        description=description,
        input_hex=data.hex(),
        input_ascii=_ascii_or_none(data),
        input_length=len(data),
        expected_hex=expected_hex,
    )


def _boundary_inputs() -> List[tuple[str, str, bytes]]:
    cases: List[tuple[str, str, bytes]] = []
    for n in (1, 31, 32, 33, 55, 56, 63, 64, 65, 119, 120, 127, 128, 129):
        cases.append((f"{n}_bytes_a", f"{n} bytes of 0x61 (padding boundary)", b"a" * n))
    cases.append(("all_bytes", "All byte values 0x00-0xFF", bytes(range(256))))
    cases.append(("invalid_utf8", "Bytes that are not valid UTF-8", b"\xff\xfe\x80\xc3\x28\xa0\xa1"))
    cases.append(("zero_secret", "32 zero bytes", bytes(32)))
    cases.append(("ff_secret", "32 0xff bytes", b"\xff" * 32))
    return cases


def sha256_vectors(include_large: bool = True) -> Dict[str, Any]:
    vectors: List[HashVector] = []

    for pub in PUBLISHED_SHA256:
        if not include_large and len(pub.data) > 4096:
            continue
        vectors.append(_vector(pub.name, pub.description, pub.data, pub.expected_hex))

    for name, description, data in _boundary_inputs():
        vectors.append(_vector(name, description, data, _sha256(data)))

    return {
        "algorithm": "SHA256",
        "output_size": 32,
        "block_size": 64,
        "test_vectors": [v.__dict__ for v in vectors],
    }


def hashlock_vectors() -> Dict[str, Any]:
    """Secret -> hash-lock pairs as both host runtimes encode them."""
    secrets_in = [
        ("sequential", "Secret 0x00..0x1f", bytes(range(32))),
        ("zero", "All-zero secret", bytes(32)),
        (
            "runtime_sample",
            "Sample secret used by the script runtime suite",
            bytes.fromhex("1234567890abcdef" * 4),
        ),
        ("high_bytes", "Secret of 0x80..0x9f (not UTF-8)", bytes(range(0x80, 0xA0))),
    ]
    out = []
    for name, description, secret in secrets_in:
        out.append(
            {
                "name": name,
                "description": description,
                "secret_hex": "0x" + secret.hex(),
                "hashlock": "0x" + _sha256(secret),
            }
        )
    return {"algorithm": "SHA256", "test_vectors": out}

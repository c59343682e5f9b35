"""Hash algorithm assignments and commitment encoding."""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass

from blake3 import blake3

from ..config import COMMITMENT_HEX_LEN, COMMITMENT_PREFIX, HASH_SIZE, SECRET_SIZE
from .sha256 import sha256

_HEX_CHARS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class HashAssignment:
    purpose: str
    algorithm: str
    output_size: int
    input_spec: str


ASSIGNMENTS = [
    HashAssignment("hashlock", "SHA-256", 32, "raw 32-byte secret"),
    HashAssignment("state_digest", "BLAKE3", 32, "canonical swap store encoding"),
]


def blake3_hash(data: bytes) -> bytes:
    return blake3(data).digest()


def hashlock_digest(secret: bytes) -> bytes:
    return sha256(secret)


def format_commitment(raw: bytes) -> str:
    if len(raw) != HASH_SIZE:
        raise ValueError(f"commitment must be {HASH_SIZE} bytes, got {len(raw)}")
    return COMMITMENT_PREFIX + raw.hex()


def parse_commitment(text: str) -> bytes:
    """Decode ``0x`` + 64 hex chars into 32 raw bytes."""
    if not isinstance(text, str) or not text.startswith(("0x", "0X")):
        raise ValueError("commitment must be a 0x-prefixed hex string")
    body = text[2:]
    if len(body) != COMMITMENT_HEX_LEN:
        raise ValueError(f"commitment must have {COMMITMENT_HEX_LEN} hex chars")
    if not set(body) <= _HEX_CHARS:
        raise ValueError("commitment contains non-hex characters")
    return bytes.fromhex(body)


def hashlock_for(secret: bytes) -> str:
    return format_commitment(hashlock_digest(secret))


def generate_secret() -> tuple[bytes, str]:
    """Return a fresh random secret and its hash-lock."""
    secret = secrets.token_bytes(SECRET_SIZE)
    return secret, hashlock_for(secret)

"""Canonical swap store digest (v1)."""
from __future__ import annotations

from .crypto.hash_algorithms import blake3_hash, parse_commitment
from .store import SwapStore
from .types import Swap, SwapStatus

_STATUS_TAG = {
    SwapStatus.OPEN: 0,
    SwapStatus.CLAIMED: 1,
    SwapStatus.REFUNDED: 2,
}


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _var_bytes(data: bytes) -> bytes:
    return _u64_be(len(data)) + data


def _uint(value: int) -> bytes:
    # Minimal big-endian magnitude behind a u64 length; amounts are unbounded.
    if value < 0:
        raise ValueError("uint must be non-negative")
    value = int(value)
    return _var_bytes(value.to_bytes((value.bit_length() + 7) // 8, "big"))


def _opt_text(value: str | None) -> bytes:
    if value is None:
        return b"\x00"
    return b"\x01" + _var_bytes(value.encode("utf-8"))


def _opt_uint(value: int | None) -> bytes:
    if value is None:
        return b"\x00"
    return b"\x01" + _uint(value)


def encode_swap_canonical(swap: Swap) -> bytes:
    buf = bytearray()
    buf += parse_commitment(swap.id)
    buf += _var_bytes(swap.sender.encode("utf-8"))
    buf += _opt_text(swap.recipient)
    buf += _uint(swap.amount)
    buf += _uint(swap.expiration)
    buf += bytes([_STATUS_TAG[swap.status]])
    buf += _uint(swap.created_at)
    buf += _opt_uint(swap.resolved_at)
    buf += _opt_text(swap.resolved_by)
    if swap.revealed_secret is None:
        buf += b"\x00"
    else:
        buf += b"\x01" + _var_bytes(swap.revealed_secret)
    return bytes(buf)


def compute_state_digest(store: SwapStore) -> str:
    """Compute state digest v1 over every swap in ``store``.

    Swaps are sorted by raw commitment bytes (not insertion order), each
    encoded in canonical field order, then hashed with BLAKE3-256.
    """
    sortable = [(parse_commitment(s.id), s) for s in store.swaps()]
    sortable.sort(key=lambda x: x[0])

    buf = bytearray()
    buf += _u64_be(len(sortable))
    for _, swap in sortable:
        buf += encode_swap_canonical(swap)
    return blake3_hash(bytes(buf)).hex()

"""Swap record stores (in-memory and host KV)."""

from __future__ import annotations

import json

import pytest

from htlc_spec.codec import decode_swap, encode_swap, swap_from_json, swap_to_json
from htlc_spec.config import SWAP_INDEX_KEY
from htlc_spec.crypto.hash_algorithms import hashlock_for
from htlc_spec.errors import ErrorCode, HtlcError
from htlc_spec.store import KvSwapStore, MemoryKv, MemorySwapStore
from htlc_spec.test_accounts import ALICE, BOB, SECRETS
from htlc_spec.types import Swap, SwapStatus


def _swap(i: int, **kw) -> Swap:
    h = hashlock_for(SECRETS[i])
    fields = dict(
        id=h, sender=ALICE, recipient=BOB, amount=5000, hashlock=h, expiration=2000, created_at=1000
    )
    fields.update(kw)
    return Swap(**fields)


@pytest.fixture(params=["memory", "kv"])
def any_store(request):
    if request.param == "memory":
        return MemorySwapStore()
    return KvSwapStore(MemoryKv())


def test_insert_get_roundtrip(any_store) -> None:
    swap = _swap(0)
    any_store.insert(swap)
    assert any_store.get(swap.id) == swap
    assert swap.id in any_store
    assert len(any_store) == 1


def test_get_returns_private_copy(any_store) -> None:
    swap = _swap(0)
    any_store.insert(swap)
    got = any_store.get(swap.id)
    got.status = SwapStatus.CLAIMED
    assert any_store.get(swap.id).status is SwapStatus.OPEN


def test_insert_duplicate_rejected(any_store) -> None:
    any_store.insert(_swap(0))
    with pytest.raises(HtlcError) as exc:
        any_store.insert(_swap(0, amount=9999))
    assert exc.value.code == ErrorCode.ALREADY_EXISTS
    assert any_store.get(_swap(0).id).amount == 5000
    assert len(any_store) == 1


def test_update_requires_existing(any_store) -> None:
    with pytest.raises(HtlcError) as exc:
        any_store.update(_swap(1))
    assert exc.value.code == ErrorCode.NOT_FOUND


def test_index_keeps_creation_order(any_store) -> None:
    ids = []
    for i in (3, 0, 2):
        swap = _swap(i)
        any_store.insert(swap)
        ids.append(swap.id)
    any_store.update(_swap(0, status=SwapStatus.REFUNDED, resolved_at=2000, resolved_by=ALICE))
    assert list(any_store.iter_ids()) == ids
    assert any_store.index_slice(1, 2) == ids[1:2]
    assert [s.id for s in any_store.swaps()] == ids


def test_clear(any_store) -> None:
    any_store.insert(_swap(0))
    any_store.clear()
    assert len(any_store) == 0
    assert any_store.get(_swap(0).id) is None


def test_contains_ignores_non_strings(any_store) -> None:
    assert 42 not in any_store


def test_kv_layout_matches_runtime_records() -> None:
    kv = MemoryKv()
    store = KvSwapStore(kv)
    swap = _swap(0)
    store.insert(swap)

    key = swap.id[2:]
    record = json.loads(kv.data[key])
    assert record["hashlock"] == swap.hashlock
    assert record["status"] == "OPEN"
    assert record["createdAt"] == 1000
    assert json.loads(kv.data["swap_keys"]) == [swap.id]


def test_codec_claimed_record() -> None:
    swap = _swap(
        0,
        status=SwapStatus.CLAIMED,
        resolved_at=1500,
        resolved_by=BOB,
        revealed_secret=SECRETS[0],
    )
    data = swap_to_json(swap)
    assert data["claimedBy"] == BOB
    assert data["claimedAt"] == 1500
    assert data["revealedSecret"] == "0x" + SECRETS[0].hex()
    assert "refundedBy" not in data
    assert swap_from_json(data) == swap
    assert decode_swap(encode_swap(swap)) == swap


def test_codec_refunded_record() -> None:
    swap = _swap(1, status=SwapStatus.REFUNDED, resolved_at=2500, resolved_by=ALICE)
    data = swap_to_json(swap)
    assert data["refundedBy"] == ALICE
    assert data["refundedAt"] == 2500
    assert "revealedSecret" not in data
    assert swap_from_json(data) == swap


def test_codec_open_recipient_any() -> None:
    swap = _swap(2, recipient=None)
    assert swap_from_json(swap_to_json(swap)).recipient is None


class _CountingKv(MemoryKv):
    def __init__(self) -> None:
        super().__init__()
        self.index_reads = 0

    def get(self, key):
        if key == SWAP_INDEX_KEY:
            self.index_reads += 1
        return super().get(key)


def test_kv_full_scan_reads_index_once() -> None:
    kv = _CountingKv()
    store = KvSwapStore(kv)
    for i in range(200):
        h = "0x" + i.to_bytes(32, "big").hex()
        store.insert(_swap(0, id=h, hashlock=h))
    kv.index_reads = 0
    assert len(store.swaps()) == 200
    assert kv.index_reads == 1

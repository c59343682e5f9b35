"""Call dispatch; each case is also emitted as a fixture."""

from __future__ import annotations

from htlc_spec.config import HtlcSettings
from htlc_spec.state_digest import compute_state_digest
from htlc_spec.state_transition import execute
from htlc_spec.store import MemorySwapStore
from htlc_spec.test_accounts import ALICE, BOB, EVE, SECRETS
from htlc_spec.types import Call, CallType, EventName, SwapStatus, TransferKind

SWAPS = "htlc/swaps.json"
READS = "htlc/reads.json"
AMOUNT = 1_000_000


def _initiate(hashlock: str, now: int, **overrides) -> Call:
    payload = {
        "hashlock": hashlock,
        "recipient": BOB,
        "expiration": now + 3600,
        "amount": AMOUNT,
    }
    payload.update(overrides)
    return Call(CallType.INITIATE, ALICE, payload, now)


def _claim(hashlock: str, secret: bytes, claimer: str, at: int) -> Call:
    return Call(CallType.CLAIM, claimer, {"hashlock": hashlock, "secret": "0x" + secret.hex()}, at)


def _refund(hashlock: str, refunder: str, at: int) -> Call:
    return Call(CallType.REFUND, refunder, {"hashlock": hashlock}, at)


def _with_swap(hashlock: str, now: int) -> MemorySwapStore:
    store = MemorySwapStore()
    result = execute(store, _initiate(hashlock, now))
    assert result.ok
    return store


# --- scenarios ---


def test_initiate_success(state_test_group, hashlock, now) -> None:
    store = MemorySwapStore()
    result = state_test_group(SWAPS, "initiate_success", store, _initiate(hashlock, now))
    assert result.ok
    assert result.data["id"] == hashlock
    assert result.data["status"] == "OPEN"
    assert result.event.name is EventName.SWAP_INITIATED
    assert result.transfer is None


def test_claim_success(state_test_group, hashlock, secret, now) -> None:
    store = _with_swap(hashlock, now)
    result = state_test_group(SWAPS, "claim_success", store, _claim(hashlock, secret, BOB, now + 10))
    assert result.ok
    assert result.transfer.destination == BOB
    assert result.transfer.amount == AMOUNT
    assert result.transfer.kind is TransferKind.CLAIM
    assert result.data["secret"] == "0x" + secret.hex()
    assert result.event.name is EventName.SWAP_CLAIMED
    assert store.get(hashlock).status is SwapStatus.CLAIMED


def test_claim_unauthorized(state_test_group, hashlock, secret, now) -> None:
    store = _with_swap(hashlock, now)
    result = state_test_group(
        SWAPS, "claim_unauthorized", store, _claim(hashlock, secret, EVE, now + 10)
    )
    assert not result.ok
    assert result.error.code.name == "UNAUTHORIZED"
    assert result.transfer is None


def test_refund_not_yet_expired(state_test_group, hashlock, now) -> None:
    store = _with_swap(hashlock, now)
    result = state_test_group(
        SWAPS, "refund_not_yet_expired", store, _refund(hashlock, ALICE, now + 10)
    )
    assert result.error.code.name == "NOT_YET_EXPIRED"


def test_refund_success(state_test_group, hashlock, now) -> None:
    store = _with_swap(hashlock, now)
    result = state_test_group(SWAPS, "refund_success", store, _refund(hashlock, ALICE, now + 3700))
    assert result.ok
    assert result.transfer.destination == ALICE
    assert result.transfer.amount == AMOUNT
    assert result.transfer.kind is TransferKind.REFUND
    assert result.data == {"hashlock": hashlock, "refundedTo": ALICE, "amount": AMOUNT}
    assert store.get(hashlock).status is SwapStatus.REFUNDED


def test_claim_expired_with_valid_secret(state_test_group, hashlock, secret, now) -> None:
    store = _with_swap(hashlock, now)
    result = state_test_group(
        SWAPS, "claim_expired_valid_secret", store, _claim(hashlock, secret, BOB, now + 3700)
    )
    assert result.error.code.name == "EXPIRED"


# --- properties ---


def test_failures_do_not_mutate(state_test_group, hashlock, secret, now) -> None:
    store = _with_swap(hashlock, now)
    digest = compute_state_digest(store)
    for name, call in [
        ("claim_secret_mismatch", _claim(hashlock, SECRETS[3], BOB, now + 10)),
        ("claim_short_secret", Call(CallType.CLAIM, BOB, {"hashlock": hashlock, "secret": "0x01"}, now)),
        ("claim_undecodable_secret", Call(CallType.CLAIM, BOB, {"hashlock": hashlock, "secret": "0xzz"}, now)),
        ("refund_by_recipient", _refund(hashlock, BOB, now + 3700)),
        ("initiate_duplicate", _initiate(hashlock, now + 1, amount=5 * AMOUNT)),
        ("initiate_past_expiration", _initiate("0x" + SECRETS[4].hex(), now, expiration=now - 1)),
    ]:
        result = state_test_group(SWAPS, name, store, call)
        assert not result.ok, name
        assert compute_state_digest(store) == digest, name


def test_claim_then_refund_exclusive(state_test_group, hashlock, secret, now) -> None:
    store = _with_swap(hashlock, now)
    assert execute(store, _claim(hashlock, secret, BOB, now + 10)).ok
    result = state_test_group(
        SWAPS, "refund_after_claim", store, _refund(hashlock, ALICE, now + 3700)
    )
    assert result.error.code.name == "NOT_OPEN"


def test_refund_then_claim_exclusive(state_test_group, hashlock, secret, now) -> None:
    store = _with_swap(hashlock, now)
    assert execute(store, _refund(hashlock, ALICE, now + 3600)).ok
    result = state_test_group(
        SWAPS, "claim_after_refund", store, _claim(hashlock, secret, BOB, now + 10)
    )
    assert result.error.code.name == "NOT_OPEN"


def test_open_recipient_claim(state_test_group, hashlock, secret, now) -> None:
    store = MemorySwapStore()
    assert execute(store, _initiate(hashlock, now, recipient=None)).ok
    result = state_test_group(
        SWAPS, "claim_open_recipient", store, _claim(hashlock, secret, EVE, now + 10)
    )
    assert result.ok
    assert result.transfer.destination == EVE


# --- reads ---


def test_query_call(state_test_group, hashlock, now) -> None:
    store = _with_swap(hashlock, now)
    result = state_test_group(READS, "query_open", store, Call(CallType.QUERY, BOB, {"hashlock": hashlock}, now))
    assert result.ok
    assert result.data["revealedSecret"] is None


def test_query_missing_call(state_test_group, now) -> None:
    missing = "0x" + SECRETS[6].hex()
    result = state_test_group(
        READS, "query_missing", MemorySwapStore(), Call(CallType.QUERY, BOB, {"hashlock": missing}, now)
    )
    assert result.error.code.name == "NOT_FOUND"


def test_list_call(state_test_group, hashlock, now) -> None:
    store = _with_swap(hashlock, now)
    result = state_test_group(
        READS,
        "list_open",
        store,
        Call(CallType.LIST, BOB, {"status": "open", "limit": None, "offset": None}, now),
    )
    assert result.ok
    assert [s["id"] for s in result.data["swaps"]] == [hashlock]
    assert result.data["next_offset"] is None


def test_list_bad_status(state_test_group, now) -> None:
    result = state_test_group(
        READS, "list_bad_status", MemorySwapStore(), Call(CallType.LIST, BOB, {"status": "PENDING"}, now)
    )
    assert result.error.code.name == "INVALID_PAYLOAD"


# --- dispatcher ---


def test_settings_min_amount() -> None:
    store = MemorySwapStore()
    h = "0x" + SECRETS[2].hex()
    result = execute(store, _initiate(h, 100, amount=50), HtlcSettings(min_amount=10))
    assert result.ok
    result = execute(store, _initiate("0x" + SECRETS[3].hex(), 100, amount=5), HtlcSettings(min_amount=10))
    assert result.error.code.name == "INSUFFICIENT_AMOUNT"


def test_non_dict_payload() -> None:
    result = execute(MemorySwapStore(), Call(CallType.QUERY, BOB, ["nope"], 0))  # type: ignore[arg-type]
    assert result.error.code.name == "INVALID_PAYLOAD"


def test_non_integer_timestamp_rejected(hashlock) -> None:
    store = MemorySwapStore()
    for at in ("1700000000", None, True):
        result = execute(store, Call(CallType.INITIATE, ALICE, {"hashlock": hashlock}, at))  # type: ignore[arg-type]
        assert result.error.code.name == "INVALID_PAYLOAD"
    assert len(store) == 0


def test_failure_json_shape(hashlock) -> None:
    result = execute(MemorySwapStore(), Call(CallType.REFUND, ALICE, {"hashlock": hashlock}, 0))
    assert result.to_json() == {
        "success": False,
        "error": "swap not found",
        "error_code": "NOT_FOUND",
        "code": 0x0200,
    }

"""HTLC swap state machine.

``OPEN`` is entered only through ``initiate``; ``CLAIMED`` and ``REFUNDED``
are terminal. Each mutating operation runs its ``_verify_*`` step to
completion before its ``_apply_*`` step writes the single record change, so a
rejected call never touches the store.

Claims are rejected at or after ``expiration`` even when the secret is
correct: claim and refund are mutually exclusive by time as well as by status.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .config import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT, MIN_SWAP_AMOUNT
from .crypto.hash_algorithms import hashlock_digest, parse_commitment
from .errors import ErrorCode, HtlcError
from .store import SwapStore
from .types import (
    Swap,
    SwapPage,
    SwapStatus,
    SwapView,
    TransferInstruction,
    TransferKind,
)
from .validation import (
    validate_amount,
    validate_commitment,
    validate_expiration,
    validate_identity,
    validate_limit,
    validate_offset,
    validate_optional_identity,
    validate_secret,
)

logger = logging.getLogger(__name__)


def _short(swap_id: str) -> str:
    return swap_id[:18] + "..."


def _load(store: SwapStore, hashlock: str) -> Swap:
    swap = store.get(hashlock)
    if swap is None:
        raise HtlcError(ErrorCode.NOT_FOUND, "swap not found")
    return swap


def _require_open(swap: Swap) -> None:
    if swap.status.is_terminal:
        raise HtlcError(
            ErrorCode.NOT_OPEN, f"swap already {swap.status.value.lower()}"
        )


def view(swap: Swap) -> SwapView:
    """Project a record for reads; the secret only appears once claimed."""
    secret = swap.revealed_secret if swap.status is SwapStatus.CLAIMED else None
    return SwapView(
        id=swap.id,
        sender=swap.sender,
        recipient=swap.recipient,
        amount=swap.amount,
        hashlock=swap.hashlock,
        expiration=swap.expiration,
        status=swap.status,
        created_at=swap.created_at,
        resolved_at=swap.resolved_at,
        resolved_by=swap.resolved_by,
        revealed_secret=secret,
    )


# --- INITIATE ---

def _verify_initiate(
    store: SwapStore,
    hashlock: object,
    recipient: object,
    expiration: object,
    amount: object,
    sender: object,
    now: int,
    min_amount: int,
) -> Swap:
    swap_id = validate_commitment(hashlock)
    amount = validate_amount(amount, min_amount)
    expiration = validate_expiration(expiration, now)
    sender = validate_identity(sender, "sender")
    recipient = validate_optional_identity(recipient, "recipient")

    if swap_id in store:
        raise HtlcError(ErrorCode.ALREADY_EXISTS, "swap with this hashlock already exists")

    return Swap(
        id=swap_id,
        sender=sender,
        recipient=recipient,
        amount=amount,
        hashlock=swap_id,
        expiration=expiration,
        status=SwapStatus.OPEN,
        created_at=now,
    )


def initiate(
    store: SwapStore,
    hashlock: str,
    recipient: Optional[str],
    expiration: int,
    amount: int,
    sender: str,
    now: int,
    *,
    min_amount: int = MIN_SWAP_AMOUNT,
) -> str:
    """Lock ``amount`` from ``sender`` under ``hashlock`` until ``expiration``."""
    swap = _verify_initiate(store, hashlock, recipient, expiration, amount, sender, now, min_amount)
    store.insert(swap)
    logger.info("swap initiated: %s by %s amount=%d", _short(swap.id), swap.sender, swap.amount)
    return swap.id


# --- CLAIM ---

def _verify_claim(
    store: SwapStore, hashlock: object, secret: object, claimer: object, now: int
) -> tuple[Swap, bytes, str]:
    swap_id = validate_commitment(hashlock)
    claimer = validate_identity(claimer, "claimer")
    swap = _load(store, swap_id)
    _require_open(swap)

    if now >= swap.expiration:
        raise HtlcError(ErrorCode.EXPIRED, "swap has expired")

    secret = validate_secret(secret)
    if hashlock_digest(secret) != parse_commitment(swap.hashlock):
        raise HtlcError(ErrorCode.SECRET_MISMATCH, "secret does not hash to hashlock")

    if swap.recipient is not None and claimer != swap.recipient:
        raise HtlcError(
            ErrorCode.UNAUTHORIZED, "only the designated recipient can claim this swap"
        )
    return swap, secret, claimer


def claim(
    store: SwapStore, hashlock: str, secret: bytes, claimer: str, now: int
) -> TransferInstruction:
    """Release the escrow to ``claimer`` on proof of the secret."""
    swap, secret, claimer = _verify_claim(store, hashlock, secret, claimer, now)
    resolved = replace(
        swap,
        status=SwapStatus.CLAIMED,
        resolved_at=now,
        resolved_by=claimer,
        revealed_secret=secret,
    )
    store.update(resolved)
    logger.info("swap claimed: %s by %s", _short(swap.id), claimer)
    return TransferInstruction(
        swap_id=swap.id, destination=claimer, amount=swap.amount, kind=TransferKind.CLAIM
    )


# --- REFUND ---

def _verify_refund(store: SwapStore, hashlock: object, refunder: object, now: int) -> tuple[Swap, str]:
    swap_id = validate_commitment(hashlock)
    refunder = validate_identity(refunder, "refunder")
    swap = _load(store, swap_id)
    _require_open(swap)

    if now < swap.expiration:
        raise HtlcError(ErrorCode.NOT_YET_EXPIRED, "swap not yet expired")

    if refunder != swap.sender:
        raise HtlcError(ErrorCode.UNAUTHORIZED, "only sender can refund")
    return swap, refunder


def refund(store: SwapStore, hashlock: str, refunder: str, now: int) -> TransferInstruction:
    """Return the escrow to the sender once the timelock has passed."""
    swap, refunder = _verify_refund(store, hashlock, refunder, now)
    resolved = replace(
        swap,
        status=SwapStatus.REFUNDED,
        resolved_at=now,
        resolved_by=refunder,
    )
    store.update(resolved)
    logger.info("swap refunded: %s to %s", _short(swap.id), swap.sender)
    return TransferInstruction(
        swap_id=swap.id, destination=swap.sender, amount=swap.amount, kind=TransferKind.REFUND
    )


# --- Reads ---

def query(store: SwapStore, hashlock: str) -> SwapView:
    swap_id = validate_commitment(hashlock)
    return view(_load(store, swap_id))


def swap_present(store: SwapStore, hashlock: str) -> bool:
    try:
        swap_id = validate_commitment(hashlock)
    except HtlcError:
        return False
    return swap_id in store


def list_swaps(
    store: SwapStore,
    status: Optional[SwapStatus] = None,
    limit: int = DEFAULT_LIST_LIMIT,
    offset: int = 0,
    *,
    max_limit: int = MAX_LIST_LIMIT,
) -> SwapPage:
    """Page through swaps in creation order.

    ``offset`` is a position in the creation index. At most ``max_limit``
    views are returned whatever ``limit`` asks for, and at most ``max_limit``
    index positions are read, so a sparse status filter may return a short
    or empty page. ``next_offset`` is where the following page starts, or
    ``None`` once the index is exhausted.
    """
    limit = validate_limit(limit, max_limit)
    offset = validate_offset(offset)

    page = SwapPage()
    position = offset
    for swap_id in store.index_slice(offset, offset + max_limit):
        position += 1
        swap = store.get(swap_id)
        if swap is None:
            continue
        if status is not None and swap.status is not status:
            continue
        page.items.append(view(swap))
        if len(page.items) == limit:
            break

    page.next_offset = position if position < len(store) else None
    return page

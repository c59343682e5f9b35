"""Format and business-rule checks run before any store mutation.

Every function is pure: it either returns a normalized value or raises
``HtlcError`` naming the violated precondition. Caller identities are taken
as supplied by the host adapter; only their shape is checked here.
"""

from __future__ import annotations

from typing import Optional

from .config import (
    DEFAULT_TIMELOCK_MARGIN_SECONDS,
    MIN_SWAP_AMOUNT,
    SECRET_SIZE,
)
from .crypto.hash_algorithms import parse_commitment
from .errors import ErrorCode, HtlcError


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_commitment(hashlock: object) -> str:
    """Return the canonical (lowercase) form of a ``0x`` + 64-hex commitment."""
    if not isinstance(hashlock, str):
        raise HtlcError(ErrorCode.INVALID_COMMITMENT, "hashlock must be a string")
    try:
        raw = parse_commitment(hashlock)
    except ValueError as exc:
        raise HtlcError(
            ErrorCode.INVALID_COMMITMENT, f"invalid hashlock: {exc}"
        ) from exc
    return "0x" + raw.hex()


def validate_secret(secret: object) -> bytes:
    if not isinstance(secret, (bytes, bytearray)):
        raise HtlcError(ErrorCode.INVALID_SECRET_LENGTH, "secret must be bytes")
    if len(secret) != SECRET_SIZE:
        raise HtlcError(
            ErrorCode.INVALID_SECRET_LENGTH,
            f"secret must be exactly {SECRET_SIZE} bytes, got {len(secret)}",
        )
    return bytes(secret)


def validate_expiration(expiration: object, now: int) -> int:
    if not _is_int(expiration):
        raise HtlcError(ErrorCode.EXPIRATION_NOT_IN_FUTURE, "expiration must be an integer timestamp")
    if expiration <= now:
        raise HtlcError(ErrorCode.EXPIRATION_NOT_IN_FUTURE, "expiration must be in the future")
    return expiration


def validate_amount(amount: object, minimum: int = MIN_SWAP_AMOUNT) -> int:
    if not _is_int(amount) or amount <= 0:
        raise HtlcError(ErrorCode.INSUFFICIENT_AMOUNT, "amount must be a positive integer")
    if amount < minimum:
        raise HtlcError(
            ErrorCode.INSUFFICIENT_AMOUNT, f"amount below minimum of {minimum}"
        )
    return amount


def validate_identity(identity: object, role: str = "caller") -> str:
    if not isinstance(identity, str) or not identity:
        raise HtlcError(ErrorCode.INVALID_ADDRESS, f"{role} must be a non-empty identity")
    return identity


def validate_optional_identity(identity: object, role: str) -> Optional[str]:
    if identity is None or identity == "":
        return None
    return validate_identity(identity, role)


def validate_limit(limit: object, cap: int) -> int:
    """Reject non-positive limits and cap the rest to ``cap``."""
    if not _is_int(limit) or limit < 1:
        raise HtlcError(ErrorCode.INVALID_PAYLOAD, "limit must be a positive integer")
    return min(limit, cap)


def validate_offset(offset: object) -> int:
    if not _is_int(offset) or offset < 0:
        raise HtlcError(ErrorCode.INVALID_PAYLOAD, "offset must be a non-negative integer")
    return offset


def validate_response_window(
    initiator_expiration: int,
    responder_expiration: int,
    now: int,
    margin: int = DEFAULT_TIMELOCK_MARGIN_SECONDS,
) -> None:
    """Check the counterparty's timelock leaves the initiator time to claim.

    The responding side locks with an expiration strictly earlier than the
    initiating side, by at least ``margin`` seconds, so that a secret revealed
    on the responder's side can still be used on the initiator's side.
    """
    validate_expiration(responder_expiration, now)
    if initiator_expiration - responder_expiration < max(margin, 1):
        raise HtlcError(
            ErrorCode.UNSAFE_TIMELOCK,
            f"responder expiration must precede initiator expiration by {margin}s",
        )

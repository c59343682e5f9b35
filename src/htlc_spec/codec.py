"""Convert Swap records to and from the script runtime's JSON record layout.

Record keys follow the layout the script runtime persists under each
commitment key: ``hashlock``, ``sender``, ``recipient``, ``amount``,
``expiration``, ``status``, ``createdAt`` and, once resolved, either
``claimedBy``/``claimedAt``/``revealedSecret`` or ``refundedBy``/``refundedAt``.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from .types import Swap, SwapStatus


def hex_to_bytes(value: Optional[str]) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    return bytes.fromhex(v)


def bytes_to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def swap_to_json(swap: Swap) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": swap.id,
        "hashlock": swap.hashlock,
        "sender": swap.sender,
        "recipient": swap.recipient,
        "amount": swap.amount,
        "expiration": swap.expiration,
        "status": swap.status.value,
        "createdAt": swap.created_at,
    }
    if swap.status is SwapStatus.CLAIMED:
        out["claimedBy"] = swap.resolved_by
        out["claimedAt"] = swap.resolved_at
        if swap.revealed_secret is not None:
            out["revealedSecret"] = bytes_to_hex(swap.revealed_secret)
    elif swap.status is SwapStatus.REFUNDED:
        out["refundedBy"] = swap.resolved_by
        out["refundedAt"] = swap.resolved_at
    return out


def swap_from_json(data: dict[str, Any]) -> Swap:
    status = SwapStatus(data.get("status", SwapStatus.OPEN.value))
    resolved_by: Optional[str] = None
    resolved_at: Optional[int] = None
    secret: Optional[bytes] = None
    if status is SwapStatus.CLAIMED:
        resolved_by = data.get("claimedBy")
        resolved_at = data.get("claimedAt")
        if data.get("revealedSecret") is not None:
            secret = hex_to_bytes(data["revealedSecret"])
    elif status is SwapStatus.REFUNDED:
        resolved_by = data.get("refundedBy")
        resolved_at = data.get("refundedAt")

    hashlock = data["hashlock"]
    return Swap(
        id=data.get("id", hashlock),
        sender=data["sender"],
        recipient=data.get("recipient") or None,
        amount=int(data["amount"]),
        hashlock=hashlock,
        expiration=int(data["expiration"]),
        status=status,
        created_at=int(data.get("createdAt", 0)),
        resolved_at=resolved_at,
        resolved_by=resolved_by,
        revealed_secret=secret,
    )


def encode_swap(swap: Swap) -> str:
    return json.dumps(swap_to_json(swap), separators=(",", ":"), sort_keys=True)


def decode_swap(text: str) -> Swap:
    return swap_from_json(json.loads(text))

"""Core HTLC types.

Identities are opaque strings supplied by the host adapter; commitment ids
are ``0x``-prefixed lowercase hex strings; amounts are integers in the host's
smallest unit; timestamps are integer seconds from the host clock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SwapStatus(Enum):
    OPEN = "OPEN"
    CLAIMED = "CLAIMED"
    REFUNDED = "REFUNDED"

    @property
    def is_terminal(self) -> bool:
        return self is not SwapStatus.OPEN


class TransferKind(Enum):
    CLAIM = "claim"
    REFUND = "refund"


class CallType(Enum):
    INITIATE = "initiate"
    CLAIM = "claim"
    REFUND = "refund"
    QUERY = "query"
    LIST = "list"


class EventName(Enum):
    SWAP_INITIATED = "SwapInitiated"
    SWAP_CLAIMED = "SwapClaimed"
    SWAP_REFUNDED = "SwapRefunded"


@dataclass
class Swap:
    id: str
    sender: str
    recipient: Optional[str]
    amount: int
    hashlock: str
    expiration: int
    status: SwapStatus = SwapStatus.OPEN
    created_at: int = 0
    resolved_at: Optional[int] = None
    resolved_by: Optional[str] = None
    revealed_secret: Optional[bytes] = None


@dataclass(frozen=True)
class SwapView:
    """Read-only projection of a Swap; the secret is absent unless claimed."""
    id: str
    sender: str
    recipient: Optional[str]
    amount: int
    hashlock: str
    expiration: int
    status: SwapStatus
    created_at: int
    resolved_at: Optional[int] = None
    resolved_by: Optional[str] = None
    revealed_secret: Optional[bytes] = None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "hashlock": self.hashlock,
            "sender": self.sender,
            "recipient": self.recipient,
            "amount": self.amount,
            "expiration": self.expiration,
            "status": self.status.value,
            "createdAt": self.created_at,
            "resolvedAt": self.resolved_at,
            "resolvedBy": self.resolved_by,
            "revealedSecret": (
                "0x" + self.revealed_secret.hex() if self.revealed_secret is not None else None
            ),
        }


@dataclass
class SwapPage:
    items: list[SwapView] = field(default_factory=list)
    next_offset: Optional[int] = None


@dataclass(frozen=True)
class TransferInstruction:
    """Tells the host to move ``amount`` out of escrow to ``destination``."""
    swap_id: str
    destination: str
    amount: int
    kind: TransferKind


@dataclass(frozen=True)
class SwapEvent:
    name: EventName
    swap_id: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class Call:
    call_type: CallType
    caller: str
    payload: dict[str, Any]
    timestamp: int

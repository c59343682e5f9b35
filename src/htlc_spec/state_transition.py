"""Call dispatch for the HTLC state machine.

Host adapters translate their native requests into a ``Call`` and hand it to
``execute``; every rejection comes back as a typed failure result instead of
an exception, and a successful ``claim``/``refund`` carries exactly one
transfer instruction.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from . import htlc
from .codec import bytes_to_hex, hex_to_bytes
from .config import HtlcSettings
from .errors import ErrorCode, HtlcError
from .store import SwapStore
from .types import (
    Call,
    CallType,
    EventName,
    SwapEvent,
    SwapStatus,
    TransferInstruction,
)

logger = logging.getLogger(__name__)


class CallResult:
    """Thin wrapper for execute results."""

    def __init__(
        self,
        ok: bool,
        error: Optional[HtlcError] = None,
        data: Any = None,
        transfer: Optional[TransferInstruction] = None,
        event: Optional[SwapEvent] = None,
    ):
        self.ok = ok
        self.error = error
        self.data = data
        self.transfer = transfer
        self.event = event

    @classmethod
    def success(
        cls,
        data: Any = None,
        transfer: Optional[TransferInstruction] = None,
        event: Optional[SwapEvent] = None,
    ) -> "CallResult":
        return cls(True, None, data, transfer, event)

    @classmethod
    def failure(cls, error: HtlcError) -> "CallResult":
        return cls(False, error)

    def to_json(self) -> dict[str, Any]:
        if self.error is not None:
            return {
                "success": False,
                "error": self.error.message,
                "error_code": self.error.code.name,
                "code": int(self.error.code),
            }
        out: dict[str, Any] = {"success": True, "data": self.data}
        if self.event is not None:
            out["event"] = self.event.name.value
        if self.transfer is not None:
            out["transfer"] = {
                "destination": self.transfer.destination,
                "amount": self.transfer.amount,
                "kind": self.transfer.kind.value,
            }
        return out


def _secret_from_payload(value: object) -> object:
    # Undecodable input passes through so the state machine reports it at
    # its place in the claim check order.
    if isinstance(value, str):
        try:
            return hex_to_bytes(value)
        except ValueError:
            return value
    return value


def _status_from_payload(value: object) -> Optional[SwapStatus]:
    if value is None or value == "":
        return None
    if isinstance(value, SwapStatus):
        return value
    try:
        return SwapStatus(str(value).upper())
    except ValueError as exc:
        raise HtlcError(ErrorCode.INVALID_PAYLOAD, f"unknown status filter: {value}") from exc


def _execute_initiate(store: SwapStore, call: Call, settings: HtlcSettings) -> CallResult:
    p = call.payload
    swap_id = htlc.initiate(
        store,
        p.get("hashlock"),
        p.get("recipient"),
        p.get("expiration"),
        p.get("amount"),
        call.caller,
        call.timestamp,
        min_amount=settings.min_amount,
    )
    data = htlc.query(store, swap_id).to_json()
    return CallResult.success(
        data=data, event=SwapEvent(EventName.SWAP_INITIATED, swap_id, data)
    )


def _execute_claim(store: SwapStore, call: Call, settings: HtlcSettings) -> CallResult:
    p = call.payload
    secret = _secret_from_payload(p.get("secret"))
    transfer = htlc.claim(store, p.get("hashlock"), secret, call.caller, call.timestamp)
    data = {
        "hashlock": transfer.swap_id,
        "secret": bytes_to_hex(bytes(secret)),
        "claimedBy": transfer.destination,
        "amount": transfer.amount,
    }
    return CallResult.success(
        data=data,
        transfer=transfer,
        event=SwapEvent(EventName.SWAP_CLAIMED, transfer.swap_id, data),
    )


def _execute_refund(store: SwapStore, call: Call, settings: HtlcSettings) -> CallResult:
    p = call.payload
    transfer = htlc.refund(store, p.get("hashlock"), call.caller, call.timestamp)
    data = {
        "hashlock": transfer.swap_id,
        "refundedTo": transfer.destination,
        "amount": transfer.amount,
    }
    return CallResult.success(
        data=data,
        transfer=transfer,
        event=SwapEvent(EventName.SWAP_REFUNDED, transfer.swap_id, data),
    )


def _execute_query(store: SwapStore, call: Call, settings: HtlcSettings) -> CallResult:
    return CallResult.success(data=htlc.query(store, call.payload.get("hashlock")).to_json())


def _execute_list(store: SwapStore, call: Call, settings: HtlcSettings) -> CallResult:
    p = call.payload
    page = htlc.list_swaps(
        store,
        status=_status_from_payload(p.get("status")),
        limit=settings.default_list_limit if p.get("limit") is None else p["limit"],
        offset=0 if p.get("offset") is None else p["offset"],
        max_limit=settings.max_list_limit,
    )
    return CallResult.success(
        data={
            "swaps": [v.to_json() for v in page.items],
            "next_offset": page.next_offset,
        }
    )


_HANDLERS = {
    CallType.INITIATE: _execute_initiate,
    CallType.CLAIM: _execute_claim,
    CallType.REFUND: _execute_refund,
    CallType.QUERY: _execute_query,
    CallType.LIST: _execute_list,
}


def execute(
    store: SwapStore, call: Call, settings: Optional[HtlcSettings] = None
) -> CallResult:
    """Run one call against ``store`` at the host time carried by the call."""
    settings = settings or HtlcSettings()
    handler = _HANDLERS.get(call.call_type)
    logger.debug("%s from %s at %s", call.call_type.value, call.caller, call.timestamp)
    try:
        if not isinstance(call.timestamp, int) or isinstance(call.timestamp, bool):
            raise HtlcError(ErrorCode.INVALID_PAYLOAD, "timestamp must be an integer")
        if handler is None:
            raise HtlcError(ErrorCode.NOT_IMPLEMENTED, f"unsupported call type: {call.call_type}")
        if not isinstance(call.payload, dict):
            raise HtlcError(ErrorCode.INVALID_PAYLOAD, "call payload must be dict")
        return handler(store, call, settings)
    except HtlcError as exc:
        logger.warning("%s rejected: %s", call.call_type.value, exc)
        return CallResult.failure(exc)

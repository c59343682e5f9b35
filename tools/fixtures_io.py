"""Serialize and deserialize swap-store fixtures and calls."""

from __future__ import annotations

from typing import Any

from htlc_spec.codec import bytes_to_hex, swap_from_json, swap_to_json
from htlc_spec.store import MemorySwapStore, SwapStore
from htlc_spec.types import Call, CallType


def store_to_json(store: SwapStore) -> dict[str, Any]:
    # Index order is part of the state: list pagination depends on it.
    return {"swaps": [swap_to_json(s) for s in store.swaps()]}


def store_from_json(data: dict[str, Any]) -> MemorySwapStore:
    store = MemorySwapStore()
    for item in data.get("swaps", []):
        store.insert(swap_from_json(item))
    return store


def _payload_to_json(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes_to_hex(bytes(value))
    return value


def call_to_json(call: Call) -> dict[str, Any]:
    return {
        "call_type": call.call_type.value,
        "caller": call.caller,
        "timestamp": call.timestamp,
        "payload": {k: _payload_to_json(v) for k, v in call.payload.items()},
    }


def call_from_json(data: dict[str, Any]) -> Call:
    # Secrets stay hex text; the dispatcher decodes them.
    return Call(
        call_type=CallType(data["call_type"]),
        caller=data["caller"],
        payload=dict(data.get("payload", {})),
        timestamp=int(data["timestamp"]),
    )

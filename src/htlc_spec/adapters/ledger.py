"""Ledger VM host adapter.

Models the contract-on-a-ledger environment: callers are ``0x`` + 40-hex
addresses, the value attached to ``initiate_swap`` is the escrowed amount,
time is the current block timestamp, and transfer instructions move balance
out of the contract's custody. Rejections revert: they raise ``HtlcError``
and leave balances, custody and the swap store unchanged.
"""

from __future__ import annotations

import logging
import string
from typing import Optional

from .. import htlc
from ..config import ADDRESS_HEX_LEN, ZERO_ADDRESS, HtlcSettings
from ..errors import ErrorCode, HtlcError
from ..state_transition import CallResult, execute
from ..store import MemorySwapStore, SwapStore
from ..types import (
    Call,
    CallType,
    SwapEvent,
    SwapPage,
    SwapStatus,
    SwapView,
    TransferInstruction,
)

logger = logging.getLogger(__name__)

_HEX_CHARS = frozenset(string.hexdigits)


def normalize_address(address: object) -> str:
    """Lowercase a ``0x`` + 40-hex address; addresses compare case-insensitively."""
    if (
        not isinstance(address, str)
        or not address.startswith(("0x", "0X"))
        or len(address) != 2 + ADDRESS_HEX_LEN
        or not set(address[2:]) <= _HEX_CHARS
    ):
        raise HtlcError(ErrorCode.INVALID_ADDRESS, f"invalid address: {address!r}")
    return "0x" + address[2:].lower()


class LedgerHost:
    """In-process ledger: balances, block time, one HTLC contract."""

    def __init__(
        self,
        balances: Optional[dict[str, int]] = None,
        timestamp: int = 0,
        settings: Optional[HtlcSettings] = None,
        store: Optional[SwapStore] = None,
    ) -> None:
        self.settings = settings or HtlcSettings()
        self.store = store if store is not None else MemorySwapStore()
        self.timestamp = timestamp
        self.balances: dict[str, int] = {}
        for address, amount in (balances or {}).items():
            self.balances[normalize_address(address)] = amount
        self.custody = 0
        self.events: list[SwapEvent] = []

    # --- clock ---

    def advance_time(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("block time cannot go backwards")
        self.timestamp += seconds
        return self.timestamp

    def balance_of(self, address: str) -> int:
        return self.balances.get(normalize_address(address), 0)

    # --- contract surface ---

    def _run(self, call_type: CallType, caller: str, payload: dict) -> CallResult:
        result = execute(
            self.store,
            Call(call_type=call_type, caller=caller, payload=payload, timestamp=self.timestamp),
            self.settings,
        )
        if result.error is not None:
            raise result.error
        if result.event is not None:
            self.events.append(result.event)
        return result

    def _execute_transfer(self, transfer: TransferInstruction) -> None:
        self.custody -= transfer.amount
        self.balances[transfer.destination] = (
            self.balances.get(transfer.destination, 0) + transfer.amount
        )
        logger.info(
            "transfer %s: %d to %s", transfer.kind.value, transfer.amount, transfer.destination
        )

    def initiate_swap(
        self, sender: str, recipient: Optional[str], hashlock: str, expiration: int, value: int
    ) -> str:
        sender = normalize_address(sender)
        if recipient is None or normalize_address(recipient) == ZERO_ADDRESS:
            recipient_id = None
        else:
            recipient_id = normalize_address(recipient)
        if isinstance(value, int) and value > self.balances.get(sender, 0):
            raise HtlcError(ErrorCode.INSUFFICIENT_BALANCE, "value exceeds sender balance")

        result = self._run(
            CallType.INITIATE,
            sender,
            {
                "hashlock": hashlock,
                "recipient": recipient_id,
                "expiration": expiration,
                "amount": value,
            },
        )
        self.balances[sender] -= value
        self.custody += value
        return result.data["id"]

    def claim_swap(self, caller: str, swap_id: str, secret: bytes) -> bool:
        result = self._run(
            CallType.CLAIM,
            normalize_address(caller),
            {"hashlock": swap_id, "secret": secret},
        )
        self._execute_transfer(result.transfer)
        return True

    def refund_swap(self, caller: str, swap_id: str) -> bool:
        result = self._run(CallType.REFUND, normalize_address(caller), {"hashlock": swap_id})
        self._execute_transfer(result.transfer)
        return True

    def get_swap(self, swap_id: str) -> SwapView:
        return htlc.query(self.store, swap_id)

    def swap_present(self, swap_id: str) -> bool:
        return htlc.swap_present(self.store, swap_id)

    def list_swaps(
        self, status: Optional[SwapStatus] = None, limit: Optional[int] = None, offset: int = 0
    ) -> SwapPage:
        return htlc.list_swaps(
            self.store,
            status=status,
            limit=limit if limit is not None else self.settings.default_list_limit,
            offset=offset,
            max_limit=self.settings.max_list_limit,
        )

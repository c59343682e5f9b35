"""HTLC error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    SUCCESS = 0x00
    VALIDATION = 0x01
    EXISTENCE = 0x02
    STATE = 0x03
    TEMPORAL = 0x04
    AUTHORIZATION = 0x05
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Success
    SUCCESS = 0x0000

    # Validation (rejected before any lookup)
    INVALID_COMMITMENT = 0x0100
    INVALID_SECRET_LENGTH = 0x0101
    INSUFFICIENT_AMOUNT = 0x0102
    EXPIRATION_NOT_IN_FUTURE = 0x0103
    INVALID_ADDRESS = 0x0104
    INVALID_PAYLOAD = 0x0105
    SECRET_MISMATCH = 0x0106
    UNSAFE_TIMELOCK = 0x0107
    INSUFFICIENT_BALANCE = 0x0108

    # Existence
    NOT_FOUND = 0x0200
    ALREADY_EXISTS = 0x0201

    # State
    NOT_OPEN = 0x0300

    # Temporal
    EXPIRED = 0x0400
    NOT_YET_EXPIRED = 0x0401

    # Authorization
    UNAUTHORIZED = 0x0500

    # Internal
    NOT_IMPLEMENTED = 0xFF01
    UNKNOWN = 0xFFFF

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.value >> 8)


@dataclass(frozen=True)
class HtlcError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"

    @property
    def category(self) -> ErrorCategory:
        return self.code.category


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen.
_EXCEPTION_ATTRS = frozenset(
    ("__traceback__", "__context__", "__cause__", "__suppress_context__")
)
_frozen_setattr = HtlcError.__setattr__


def _htlc_error_setattr(self: HtlcError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


HtlcError.__setattr__ = _htlc_error_setattr  # type: ignore[method-assign]

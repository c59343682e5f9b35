"""HTLC configuration constants.

Keep this file aligned with the constants of both host runtimes (the ledger
contract and the script runtime handler); a mismatch here is a mismatch in
cross-environment behavior.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

# Commitment / secret sizes
HASH_SIZE = 32
SECRET_SIZE = 32
COMMITMENT_PREFIX = "0x"
COMMITMENT_HEX_LEN = HASH_SIZE * 2

# Units
COIN_DECIMALS = 6
COIN_VALUE = 10**COIN_DECIMALS  # one whole coin in the smallest unit

# Anti-dust threshold, in the smallest host unit
MIN_SWAP_AMOUNT = 1000

# Enumeration
DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 100

# Protocol convention: the responding side must expire this much earlier
# than the initiating side.
DEFAULT_TIMELOCK_MARGIN_SECONDS = 1800

# Persisted layout (script runtime KV)
SWAP_INDEX_KEY = "swap_keys"

# Identity used by the script runtime when the caller header is missing
ANONYMOUS_CALLER = "anonymous"

# Ledger addresses
ADDRESS_HEX_LEN = 40
ZERO_ADDRESS = "0x" + "0" * ADDRESS_HEX_LEN

SERVICE_NAME = "HTLC Atomic Swap"
SERVICE_VERSION = "1.0.1"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


@dataclass
class HtlcSettings:
    """Runtime settings shared by the dispatcher and both adapters."""
    min_amount: int = MIN_SWAP_AMOUNT
    max_list_limit: int = MAX_LIST_LIMIT
    default_list_limit: int = DEFAULT_LIST_LIMIT
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.min_amount < 1:
            raise ValueError("min_amount must be >= 1")
        if self.max_list_limit < 1:
            raise ValueError("max_list_limit must be >= 1")
        self.default_list_limit = min(self.default_list_limit, self.max_list_limit)

    @classmethod
    def from_env(cls) -> "HtlcSettings":
        """Load settings from environment variables."""
        return cls(
            min_amount=_env_int("HTLC_MIN_AMOUNT", MIN_SWAP_AMOUNT),
            max_list_limit=_env_int("HTLC_MAX_LIST_LIMIT", MAX_LIST_LIMIT),
            default_list_limit=_env_int("HTLC_DEFAULT_LIST_LIMIT", DEFAULT_LIST_LIMIT),
            log_level=os.environ.get("HTLC_LOG_LEVEL", "INFO").upper(),
        )

    def configure_logging(self) -> None:
        logging.basicConfig(
            level=getattr(logging, self.log_level, logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )

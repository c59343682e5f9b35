"""Swap record storage: one record per commitment id plus an ordered index."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Iterator, Optional, Protocol

from .codec import decode_swap, encode_swap
from .config import SWAP_INDEX_KEY
from .errors import ErrorCode, HtlcError
from .types import Swap

_INDEX_CHUNK = 64


class SwapStore(ABC):
    """Keyed swap storage with read-after-write consistency per key.

    ``get`` hands out a private copy; callers persist changes through
    ``insert``/``update`` only.
    """

    @abstractmethod
    def get(self, swap_id: str) -> Optional[Swap]:
        ...

    @abstractmethod
    def insert(self, swap: Swap) -> None:
        """Store a new record and append its id to the index."""

    @abstractmethod
    def update(self, swap: Swap) -> None:
        """Overwrite an existing record; the index is unchanged."""

    @abstractmethod
    def index_slice(self, start: int, stop: int) -> list[str]:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...

    def __contains__(self, swap_id: object) -> bool:
        return isinstance(swap_id, str) and self.get(swap_id) is not None

    def iter_ids(self) -> Iterator[str]:
        start = 0
        while True:
            chunk = self.index_slice(start, start + _INDEX_CHUNK)
            if not chunk:
                return
            yield from chunk
            start += len(chunk)

    def swaps(self) -> list[Swap]:
        out = []
        for swap_id in self.iter_ids():
            swap = self.get(swap_id)
            if swap is not None:
                out.append(swap)
        return out


class MemorySwapStore(SwapStore):
    def __init__(self) -> None:
        self._records: dict[str, Swap] = {}
        self._index: list[str] = []

    def get(self, swap_id: str) -> Optional[Swap]:
        swap = self._records.get(swap_id)
        return deepcopy(swap) if swap is not None else None

    def insert(self, swap: Swap) -> None:
        if swap.id in self._records:
            raise HtlcError(ErrorCode.ALREADY_EXISTS, f"swap {swap.id} already exists")
        self._records[swap.id] = deepcopy(swap)
        self._index.append(swap.id)

    def update(self, swap: Swap) -> None:
        if swap.id not in self._records:
            raise HtlcError(ErrorCode.NOT_FOUND, f"swap {swap.id} not found")
        self._records[swap.id] = deepcopy(swap)

    def index_slice(self, start: int, stop: int) -> list[str]:
        return self._index[start:stop]

    def clear(self) -> None:
        self._records.clear()
        self._index.clear()

    def __len__(self) -> int:
        return len(self._index)


class KeyValue(Protocol):
    """String key-value storage offered by a script runtime host."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryKv:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


def _record_key(swap_id: str) -> str:
    return swap_id[2:] if swap_id.startswith(("0x", "0X")) else swap_id


class KvSwapStore(SwapStore):
    """Swap store over host KV: JSON record per id, JSON list index."""

    def __init__(self, kv: KeyValue, index_key: str = SWAP_INDEX_KEY) -> None:
        self.kv = kv
        self.index_key = index_key

    def _index(self) -> list[str]:
        raw = self.kv.get(self.index_key)
        return json.loads(raw) if raw else []

    def get(self, swap_id: str) -> Optional[Swap]:
        raw = self.kv.get(_record_key(swap_id))
        return decode_swap(raw) if raw else None

    def insert(self, swap: Swap) -> None:
        key = _record_key(swap.id)
        if self.kv.get(key):
            raise HtlcError(ErrorCode.ALREADY_EXISTS, f"swap {swap.id} already exists")
        index = self._index()
        index.append(swap.id)
        self.kv.set(key, encode_swap(swap))
        self.kv.set(self.index_key, json.dumps(index))

    def update(self, swap: Swap) -> None:
        key = _record_key(swap.id)
        if not self.kv.get(key):
            raise HtlcError(ErrorCode.NOT_FOUND, f"swap {swap.id} not found")
        self.kv.set(key, encode_swap(swap))

    def index_slice(self, start: int, stop: int) -> list[str]:
        return self._index()[start:stop]

    def iter_ids(self) -> Iterator[str]:
        return iter(self._index())

    def clear(self) -> None:
        for swap_id in self._index():
            self.kv.delete(_record_key(swap_id))
        self.kv.delete(self.index_key)

    def __len__(self) -> int:
        return len(self._index())

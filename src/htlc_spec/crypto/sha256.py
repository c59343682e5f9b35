"""Reference SHA-256 (FIPS 180-4) with no platform crypto dependency.

Both host environments verify hash-locks with this routine, so a secret
revealed on one side is recognized bit-for-bit on the other. Inputs are raw
bytes; there is no text decoding step.
"""

from __future__ import annotations

import struct

DIGEST_SIZE = 32
BLOCK_SIZE = 64

_MASK = 0xFFFFFFFF

_K = (
    0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5, 0x3956C25B, 0x59F111F1, 0x923F82A4, 0xAB1C5ED5,
    0xD807AA98, 0x12835B01, 0x243185BE, 0x550C7DC3, 0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7, 0xC19BF174,
    0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC, 0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA,
    0x983E5152, 0xA831C66D, 0xB00327C8, 0xBF597FC7, 0xC6E00BF3, 0xD5A79147, 0x06CA6351, 0x14292967,
    0x27B70A85, 0x2E1B2138, 0x4D2C6DFC, 0x53380D13, 0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
    0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3, 0xD192E819, 0xD6990624, 0xF40E3585, 0x106AA070,
    0x19A4C116, 0x1E376C08, 0x2748774C, 0x34B0BCB5, 0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F, 0x682E6FF3,
    0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208, 0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
)

_H0 = (
    0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A,
    0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19,
)


def _rotr(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _MASK


def _ch(x: int, y: int, z: int) -> int:
    return (x & y) ^ (~x & z)


def _maj(x: int, y: int, z: int) -> int:
    return (x & y) ^ (x & z) ^ (y & z)


def _big_sigma0(x: int) -> int:
    return _rotr(x, 2) ^ _rotr(x, 13) ^ _rotr(x, 22)


def _big_sigma1(x: int) -> int:
    return _rotr(x, 6) ^ _rotr(x, 11) ^ _rotr(x, 25)


def _small_sigma0(x: int) -> int:
    return _rotr(x, 7) ^ _rotr(x, 18) ^ (x >> 3)


def _small_sigma1(x: int) -> int:
    return _rotr(x, 17) ^ _rotr(x, 19) ^ (x >> 10)


def _compress(state: list[int], block: bytes) -> None:
    """Mix one 64-byte block into ``state`` in place."""
    w = list(struct.unpack(">16I", block))
    for t in range(16, 64):
        w.append(
            (_small_sigma1(w[t - 2]) + w[t - 7] + _small_sigma0(w[t - 15]) + w[t - 16]) & _MASK
        )

    a, b, c, d, e, f, g, h = state
    for t in range(64):
        t1 = (h + _big_sigma1(e) + _ch(e, f, g) + _K[t] + w[t]) & _MASK
        t2 = (_big_sigma0(a) + _maj(a, b, c)) & _MASK
        h = g
        g = f
        f = e
        e = (d + t1) & _MASK
        d = c
        c = b
        b = a
        a = (t1 + t2) & _MASK

    for i, v in enumerate((a, b, c, d, e, f, g, h)):
        state[i] = (state[i] + v) & _MASK


def _padding(message_len: int) -> bytes:
    # 0x80, zeros up to 56 mod 64, then the 64-bit big-endian bit length.
    zeros = (BLOCK_SIZE - 1 - 8 - message_len) % BLOCK_SIZE
    return b"\x80" + b"\x00" * zeros + struct.pack(">Q", (message_len * 8) & 0xFFFFFFFFFFFFFFFF)


class Sha256:
    """Incremental SHA-256 hasher (hashlib-like surface)."""

    digest_size = DIGEST_SIZE
    block_size = BLOCK_SIZE
    name = "sha256"

    def __init__(self, data: bytes = b"") -> None:
        self._state = list(_H0)
        self._buffer = b""
        self._length = 0
        self.update(data)

    def update(self, data: bytes) -> None:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError("sha256 input must be bytes-like")
        data = bytes(data)
        self._length += len(data)
        buf = self._buffer + data
        full = len(buf) - (len(buf) % BLOCK_SIZE)
        for offset in range(0, full, BLOCK_SIZE):
            _compress(self._state, buf[offset:offset + BLOCK_SIZE])
        self._buffer = buf[full:]

    def copy(self) -> "Sha256":
        other = Sha256()
        other._state = list(self._state)
        other._buffer = self._buffer
        other._length = self._length
        return other

    def digest(self) -> bytes:
        state = list(self._state)
        tail = self._buffer + _padding(self._length)
        for offset in range(0, len(tail), BLOCK_SIZE):
            _compress(state, tail[offset:offset + BLOCK_SIZE])
        return struct.pack(">8I", *state)

    def hexdigest(self) -> str:
        return self.digest().hex()


def sha256(data: bytes) -> bytes:
    return Sha256(data).digest()


def sha256_hex(data: bytes) -> str:
    return sha256(data).hex()

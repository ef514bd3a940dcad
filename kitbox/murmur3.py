"""MurmurHash3, x64 128-bit variant."""

from __future__ import annotations

import struct

__all__ = ["sum128"]

_MASK = (1 << 64) - 1
_C1 = 0x87C37B91114253D5
_C2 = 0x4CF5AD432745937F


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (64 - shift))) & _MASK


def _fmix(value: int) -> int:
    value ^= value >> 33
    value = (value * 0xFF51AFD7ED558CCD) & _MASK
    value ^= value >> 33
    value = (value * 0xC4CEB9FE1A85EC53) & _MASK
    value ^= value >> 33
    return value


def _mix_k1(k1: int) -> int:
    k1 = (k1 * _C1) & _MASK
    k1 = _rotl(k1, 31)
    return (k1 * _C2) & _MASK


def _mix_k2(k2: int) -> int:
    k2 = (k2 * _C2) & _MASK
    k2 = _rotl(k2, 33)
    return (k2 * _C1) & _MASK


def sum128(data: bytes | str, seed: int = 0) -> tuple[int, int]:
    """Return the two 64-bit halves of the 128-bit MurmurHash3 of ``data``.

    Text is hashed as its UTF-8 encoding; ``seed`` is taken as an unsigned
    32-bit value and seeds both halves.
    """
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    seed &= 0xFFFFFFFF
    h1 = h2 = seed
    body_len = len(raw) - len(raw) % 16

    for k1, k2 in struct.iter_unpack("<QQ", raw[:body_len]):
        h1 ^= _mix_k1(k1)
        h1 = _rotl(h1, 27)
        h1 = (h1 + h2) & _MASK
        h1 = (h1 * 5 + 0x52DCE729) & _MASK

        h2 ^= _mix_k2(k2)
        h2 = _rotl(h2, 31)
        h2 = (h2 + h1) & _MASK
        h2 = (h2 * 5 + 0x38495AB5) & _MASK

    tail = raw[body_len:]
    if len(tail) > 8:
        h2 ^= _mix_k2(int.from_bytes(tail[8:], "little"))
    if tail:
        h1 ^= _mix_k1(int.from_bytes(tail[:8], "little"))

    h1 ^= len(raw)
    h2 ^= len(raw)
    h1 = (h1 + h2) & _MASK
    h2 = (h2 + h1) & _MASK
    h1 = _fmix(h1)
    h2 = _fmix(h2)
    h1 = (h1 + h2) & _MASK
    h2 = (h2 + h1) & _MASK
    return h1, h2
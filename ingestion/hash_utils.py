import struct
from typing import Sequence

MASK32 = 0xFFFFFFFF


def code_units(s: str) -> Sequence[int]:
    """UTF-16 code units of `s` (astral characters become surrogate pairs)."""
    if s.isascii():
        return s.encode("ascii")
    raw = s.encode("utf-16-le")
    return struct.unpack(f"<{len(raw) // 2}H", raw)


def mix32(units: Sequence[int], seed: int = 0) -> int:
    """Jenkins one-at-a-time hash with 32-bit wraparound."""
    h = seed & MASK32
    for u in units:
        h = (h + u) & MASK32
        h = (h + (h << 10)) & MASK32
        h ^= h >> 6
    h = (h + (h << 3)) & MASK32
    h ^= h >> 11
    h = (h + (h << 15)) & MASK32
    return h


def hash32(s: str, seed: int = 0) -> int:
    return mix32(code_units(s), seed)

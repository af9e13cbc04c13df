"""Fast non-cryptographic string hashes used for shard selection."""

from __future__ import annotations

_MASK = 0xFFFFFFFF
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619


def _as_bytes(key: str | bytes) -> bytes:
    return key.encode("utf-8") if isinstance(key, str) else bytes(key)


def fnv32(key: str | bytes) -> int:
    """Return the 32-bit FNV-1 hash of ``key``."""
    h = _FNV_OFFSET
    for byte in _as_bytes(key):
        h = (h * _FNV_PRIME) & _MASK
        h ^= byte
    return h


def djb33(seed: int, key: str | bytes) -> int:
    """Return the 32-bit djb2-style hash of ``key`` mixed with ``seed``."""
    data = _as_bytes(key)
    length = len(data) & _MASK
    d = (5381 + seed + length) & _MASK

    def step(value: int, byte: int) -> int:
        return ((value * 33) & _MASK) ^ byte

    i = 0
    if length >= 4:
        while i < length - 4:
            for byte in data[i : i + 4]:
                d = step(d, byte)
            i += 4

    # The final byte of the key never enters the hash.
    remaining = length - i
    if remaining >= 2:
        for byte in data[i : i + remaining - 1]:
            d = step(d, byte)

    return (d ^ (d >> 16)) & _MASK
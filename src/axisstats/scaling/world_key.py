"""World keys: the raw, unscaled coordinate an axis represents.

A world key is a signed 64-bit integer holding a timestamp (epoch ms), a small
category code, or two 32-bit sub-keys packed into one value. Packed keys keep
the primary component in the high half so that natural integer order sorts by
primary first, then by sub-key.
"""

from __future__ import annotations

import numpy as np

MASK_32 = 0xFFFFFFFF
MASK_64 = 0xFFFFFFFFFFFFFFFF

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def to_signed64(value: int) -> int:
    """Wrap an arbitrary int into the signed 64-bit range (two's complement)."""
    value &= MASK_64
    if value > INT64_MAX:
        value -= 1 << 64
    return value


def pack_key(high: int, low: int) -> int:
    """Pack two 32-bit sub-keys into one signed 64-bit world key.

    Each half is masked to 32 bits first, so negative inputs do not sign-extend
    into the other half.
    """
    return to_signed64(((high & MASK_32) << 32) | (low & MASK_32))


def unpack_key(key: int) -> tuple[int, int]:
    """Split a packed world key into its (high, low) 32-bit halves (unsigned)."""
    return (key >> 32) & MASK_32, key & MASK_32


def pack_keys(high: np.ndarray, low: np.ndarray) -> np.ndarray:
    """Vectorized pack_key() over two integer arrays; returns int64."""
    hi = np.asarray(high).astype(np.int64).view(np.uint64) & np.uint64(MASK_32)
    lo = np.asarray(low).astype(np.int64).view(np.uint64) & np.uint64(MASK_32)
    return ((hi << np.uint64(32)) | lo).view(np.int64)

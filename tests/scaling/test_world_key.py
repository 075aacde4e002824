"""Unit tests for world key packing."""

from __future__ import annotations

import numpy as np

from axisstats.scaling.world_key import (
    INT64_MAX,
    INT64_MIN,
    MASK_32,
    MASK_64,
    pack_key,
    pack_keys,
    to_signed64,
    unpack_key,
)


def test_pack_key_layout() -> None:
    assert pack_key(1, 2) == (1 << 32) | 2
    assert pack_key(0, 0) == 0


def test_pack_unpack_round_trip() -> None:
    for high, low in [(0, 0), (1, 2), (12345, 67890), (MASK_32, MASK_32), (0x7FFFFFFF, 0)]:
        assert unpack_key(pack_key(high, low)) == (high, low)


def test_negative_low_does_not_sign_extend() -> None:
    key = pack_key(3, -1)
    assert unpack_key(key) == (3, MASK_32)


def test_high_bit_set_gives_negative_key() -> None:
    assert pack_key(0x80000000, 0) == INT64_MIN
    assert pack_key(0x7FFFFFFF, MASK_32) == INT64_MAX


def test_to_signed64_wraps() -> None:
    assert to_signed64(MASK_64) == -1
    assert to_signed64(INT64_MAX) == INT64_MAX
    assert to_signed64(1 << 64) == 0


def test_packed_keys_sort_by_primary_then_sub() -> None:
    assert pack_key(1, MASK_32) < pack_key(2, 0)
    assert pack_key(1, 3) < pack_key(1, 4)


def test_pack_keys_matches_scalar() -> None:
    high = np.array([1, 2, 0x80000000, 0])
    low = np.array([5, -1, 0, 7])
    packed = pack_keys(high, low)
    assert packed.dtype == np.int64
    assert packed.tolist() == [pack_key(h, l) for h, l in zip(high.tolist(), low.tolist())]

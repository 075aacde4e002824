"""Shannon entropy over the discrete values observed in one bin."""

from __future__ import annotations

from collections import Counter
from typing import Optional

import numpy as np


class BinEntropy:
    """Frequency table for one bin, producing entropy in bits.

    The first calc() result is memoized and never invalidated: samples added
    afterwards are counted but do not change what calc() returns. Panels
    compute entropy once per render, after accumulation. ``is_stale`` reports
    when the cached value no longer reflects the frequency table.
    """

    def __init__(self, bin_key: str = ""):
        self.bin_key = bin_key
        self._freq: Counter[int] = Counter()
        self._total = 0
        self._cached: Optional[float] = None
        self._cached_total = 0

    def add(self, value: int) -> None:
        self._freq[int(value)] += 1
        self._total += 1

    @property
    def total(self) -> int:
        return self._total

    @property
    def distinct(self) -> int:
        return len(self._freq)

    @property
    def cached(self) -> Optional[float]:
        """Memoized entropy, or None if calc() has not run yet."""
        return self._cached

    @property
    def is_stale(self) -> bool:
        return self._cached is not None and self._cached_total != self._total

    def calc(self) -> float:
        if self._cached is not None:
            return self._cached
        if self._total == 0:
            entropy = 0.0
        else:
            counts = np.fromiter(self._freq.values(), dtype=np.float64, count=len(self._freq))
            probs = counts / self._total
            entropy = float(-np.sum(probs * np.log2(probs)))
            if entropy == 0.0:
                entropy = 0.0  # single distinct value yields -0.0
        self._cached = entropy
        self._cached_total = self._total
        return entropy

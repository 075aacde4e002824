"""Counter context: per-bin totals consumed by the scale mapper and finalization.

The render engine only reads aggregate totals, item counts and bin keys from
a counter context. Bins are keyed by the world key rendered as a string.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Mapping, Protocol, runtime_checkable


@runtime_checkable
class CounterContext(Protocol):
    """Interface the render engine requires from a per-bin counting store."""

    def count(self, bin_key: str, weight: float = 1.0, items: int = 1) -> None: ...

    def bins(self) -> Iterable[str]: ...

    def totals(self) -> Mapping[str, float]: ...

    def item_counts(self) -> Mapping[str, int]: ...

    def total_maximum(self) -> float: ...


class SimpleCounterContext:
    """In-memory CounterContext: sums weights and counts items per bin."""

    def __init__(self) -> None:
        self._totals: defaultdict[str, float] = defaultdict(float)
        self._items: defaultdict[str, int] = defaultdict(int)

    def count(self, bin_key: str, weight: float = 1.0, items: int = 1) -> None:
        self._totals[bin_key] += float(weight)
        self._items[bin_key] += int(items)

    def bins(self) -> list[str]:
        return list(self._totals)

    def totals(self) -> dict[str, float]:
        return dict(self._totals)

    def item_counts(self) -> dict[str, int]:
        return dict(self._items)

    def total_maximum(self) -> float:
        if not self._totals:
            return 0.0
        return max(self._totals.values())

    def __len__(self) -> int:
        return len(self._totals)

"""
Order statistics for the samples of one bin (box plot quartiles, mean, stdev).

Percentiles are rank based: the sorted sample list is indexed directly, with
no interpolation between neighbours. For small bins the low/high percentiles
coincide with min/max.

Lifecycle: samples are appended until calc() is called. calc() is idempotent
and caches its BinStat. After calc(), add() raises BinFinalizedError until
reset() clears the bin.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

import numpy as np
import pandas as pd

from axisstats.errors import BinFinalizedError, EmptyBinError

# Percentile ranks reported for every bin.
PERCENTILE_RANKS = (2, 9, 91, 98)

STATS_COLUMNS = ["count", "min", "p02", "p09", "median", "mean", "stdev", "p91", "p98", "max"]


@dataclass(frozen=True)
class BinStat:
    """Immutable statistics of one bin."""
    min: int
    max: int
    mean: float
    median: int
    stdev: float       # population standard deviation
    sample_count: int
    p02: int
    p09: int
    p91: int
    p98: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class BinStatistics:
    """Accumulates integer samples for one bin and computes a BinStat."""

    def __init__(self, bin_key: str = ""):
        self.bin_key = bin_key
        self._samples: list[int] = []
        self._sum = 0
        self._result: Optional[BinStat] = None

    def add(self, sample: int) -> None:
        if self._result is not None:
            raise BinFinalizedError(
                f"bin {self.bin_key!r} already calculated; call reset() before adding samples"
            )
        sample = int(sample)
        self._samples.append(sample)
        self._sum += sample

    def extend(self, samples) -> None:
        for sample in samples:
            self.add(sample)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def finalized(self) -> bool:
        return self._result is not None

    def reset(self) -> None:
        """Drop all samples and the cached result."""
        self._samples = []
        self._sum = 0
        self._result = None

    def calc(self) -> BinStat:
        """Sort once and compute the statistics; later calls return the same BinStat.

        Raises:
            EmptyBinError: If no sample was added.
        """
        if self._result is not None:
            return self._result

        n = len(self._samples)
        if n == 0:
            raise EmptyBinError(f"bin {self.bin_key!r} has no samples")

        values = np.sort(np.asarray(self._samples, dtype=np.int64))
        mean = self._sum / n
        stdev = float(np.sqrt(np.sum((values - mean) ** 2) / n))
        p02, p09, p91, p98 = (int(values[(n * r) // 100]) for r in PERCENTILE_RANKS)

        self._result = BinStat(
            min=int(values[0]),
            max=int(values[-1]),
            mean=float(mean),
            median=int(values[n // 2]),
            stdev=stdev,
            sample_count=n,
            p02=p02,
            p09=p09,
            p91=p91,
            p98=p98,
        )
        return self._result

    def __repr__(self) -> str:
        return f"BinStatistics(bin_key={self.bin_key!r}, samples={self.sample_count}, finalized={self.finalized})"


def stats_table(stats: Mapping[str, BinStat]) -> pd.DataFrame:
    """
    One row per bin key (sorted), columns: bin + STATS_COLUMNS.

    Returns an empty frame with the same columns when stats is empty.
    """
    if not stats:
        return pd.DataFrame(columns=["bin"] + STATS_COLUMNS)

    rows = []
    for key in sorted(stats):
        s = stats[key]
        rows.append({
            "bin": key,
            "count": s.sample_count,
            "min": s.min,
            "p02": s.p02,
            "p09": s.p09,
            "median": s.median,
            "mean": s.mean,
            "stdev": s.stdev,
            "p91": s.p91,
            "p98": s.p98,
            "max": s.max,
        })
    return pd.DataFrame(rows, columns=["bin"] + STATS_COLUMNS)

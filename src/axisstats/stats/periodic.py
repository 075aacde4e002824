"""
Periodic box plot aggregation.

Raw observations are grouped per (bin, calendar bucket): numeric values are
summed, categorical values are counted as distinct values. Each bucket then
becomes one sample of the bin's statistics. Empty buckets do not appear in the
grouped data at all, so zero_fill() pads each bin up to the number of buckets
the calendar says it should have.
"""

from __future__ import annotations

from typing import Callable, Optional

import pandas as pd

from axisstats.stats.bin_statistics import BinStatistics
from axisstats.utils.logging import get_logger

logger = get_logger(__name__)

# Visible, non-fatal warning surfaced to callers when slot counts cannot be determined.
SETTINGS_WARNING = "Possible Settings Error"


def zero_fill(stats: BinStatistics, expected: int) -> Optional[str]:
    """
    Pad `stats` with zero samples up to `expected` samples.

    Returns:
        None when the bin was padded (or already complete), otherwise a warning
        string. The observed samples are always kept.
    """
    if expected <= 0:
        return SETTINGS_WARNING

    observed = stats.sample_count
    if observed > expected:
        msg = (
            f"bin {stats.bin_key!r}: {observed} samples exceed the {expected} expected slots"
        )
        logger.warning(msg)
        return msg

    for _ in range(expected - observed):
        stats.add(0)
    return None


def bucket_values(
    bins: pd.Series,
    buckets: pd.Series,
    values: pd.Series,
    *,
    categorical: bool,
) -> pd.Series:
    """
    Aggregate values per (bin, bucket).

    Args:
        bins: Bin label per row.
        buckets: Calendar bucket label per row.
        values: Observation per row.
        categorical: Count distinct values when True, otherwise sum them.

    Returns:
        Series indexed by (bin, bucket) with one int64 value per populated bucket.
    """
    tmp = pd.DataFrame({"bin": bins, "bucket": buckets, "value": values}).dropna()
    if len(tmp) == 0:
        return pd.Series(
            [], dtype="int64",
            index=pd.MultiIndex.from_arrays([[], []], names=["bin", "bucket"]),
        )
    grp = tmp.groupby(["bin", "bucket"], sort=True)["value"]
    if categorical:
        agg = grp.nunique()
    else:
        agg = grp.sum().round()
    return agg.astype("int64")


def periodic_statistics(
    per_bucket: pd.Series,
    slots_for_bin: Callable[[str], int],
    *,
    checkpoint: Optional[Callable[[], None]] = None,
) -> tuple[dict[str, BinStatistics], list[str]]:
    """
    Turn per-bucket aggregates into zero-filled BinStatistics per bin.

    Args:
        per_bucket: Output of bucket_values().
        slots_for_bin: Expected slot count for a bin label (see expected_slots()).
        checkpoint: Called once per bin; may raise to abandon the work.

    Returns:
        (stats by bin label, warnings). Warnings are deduplicated, in first-seen order.
    """
    stats: dict[str, BinStatistics] = {}
    warnings: list[str] = []
    if len(per_bucket) == 0:
        return stats, warnings

    for bin_key, sub in per_bucket.groupby(level="bin", sort=True):
        if checkpoint is not None:
            checkpoint()
        bin_key = str(bin_key)
        bs = BinStatistics(bin_key)
        bs.extend(sub.tolist())
        warning = zero_fill(bs, slots_for_bin(bin_key))
        if warning is not None and warning not in warnings:
            warnings.append(warning)
        stats[bin_key] = bs
    return stats, warnings

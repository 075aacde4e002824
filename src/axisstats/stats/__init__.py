"""Per-bin statistics: order statistics, entropy, calendar slots and periodic aggregation."""

from axisstats.stats.bin_entropy import BinEntropy
from axisstats.stats.bin_statistics import BinStat, BinStatistics, stats_table
from axisstats.stats.calendar_slots import (
    SLOTS_UNKNOWN,
    SLOTS_UNSATISFIABLE,
    TimeBin,
    days_in_month,
    days_in_year,
    expected_slots,
)
from axisstats.stats.periodic import SETTINGS_WARNING, zero_fill

__all__ = [
    "BinEntropy",
    "BinStat",
    "BinStatistics",
    "SETTINGS_WARNING",
    "SLOTS_UNKNOWN",
    "SLOTS_UNSATISFIABLE",
    "TimeBin",
    "days_in_month",
    "days_in_year",
    "expected_slots",
    "stats_table",
    "zero_fill",
]

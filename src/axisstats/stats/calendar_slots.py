"""Calendar utilities: time bins, leap-year aware day counts and expected slot counts.

Periodic box plots group raw observations into calendar buckets (minute,
hour, day, month) inside a coarser grouping bin (a day, a month, a year).
Buckets with no observations never show up in the grouped data, so the
number of buckets the grouping *should* contain is needed to pad the samples
with zeros. expected_slots() provides that number.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import pandas as pd

# Sentinels returned by expected_slots().
SLOTS_UNKNOWN = -1          # combination not covered
SLOTS_UNSATISFIABLE = -2    # periodic grouping, cannot be counted on the calendar

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
MONTH_MS = 30 * DAY_MS  # non-calendar spans only


class TimeBin(Enum):
    """Time bucketing for axis expressions ("field@bin") and periodic box plots."""
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    MONTH = "month"
    YEAR = "year"
    HOUR_OF_DAY = "hour_of_day"
    DAY_OF_WEEK = "day_of_week"
    MONTH_OF_YEAR = "month_of_year"

    @property
    def is_periodic(self) -> bool:
        return self in _PERIODIC_RANGES

    @property
    def periodic_range(self) -> Optional[tuple[int, int]]:
        """(min, max) ordinal for periodic bins, None for calendar bins."""
        return _PERIODIC_RANGES.get(self)

    @property
    def label_format(self) -> Optional[str]:
        return _LABEL_FORMATS.get(self)


_PERIODIC_RANGES: dict[TimeBin, tuple[int, int]] = {
    TimeBin.HOUR_OF_DAY: (0, 23),
    TimeBin.DAY_OF_WEEK: (0, 6),
    TimeBin.MONTH_OF_YEAR: (1, 12),
}

_LABEL_FORMATS: dict[TimeBin, str] = {
    TimeBin.MINUTE: "%Y-%m-%d %H:%M",
    TimeBin.HOUR: "%Y-%m-%d %H",
    TimeBin.DAY: "%Y-%m-%d",
    TimeBin.MONTH: "%Y-%m",
    TimeBin.YEAR: "%Y",
}

_FLOOR_FREQ: dict[TimeBin, str] = {
    TimeBin.MINUTE: "min",
    TimeBin.HOUR: "h",
    TimeBin.DAY: "D",
}

_PERIOD_FREQ: dict[TimeBin, str] = {
    TimeBin.MONTH: "M",
    TimeBin.YEAR: "Y",
}

_PERIOD_LENGTH_MS: dict[TimeBin, int] = {
    TimeBin.MINUTE: MINUTE_MS,
    TimeBin.HOUR: HOUR_MS,
    TimeBin.DAY: DAY_MS,
    TimeBin.MONTH: MONTH_MS,
}


def days_in_month(month: str) -> int:
    """Days in a "YYYY-MM" month, leap-year aware."""
    return int(pd.Period(month, freq="M").days_in_month)


def days_in_year(year: str) -> int:
    """366 for leap years, else 365. Accepts "YYYY"."""
    return 366 if pd.Period(year, freq="Y").is_leap_year else 365


def expected_slots(
    period: TimeBin,
    grouping: Optional[TimeBin],
    timeframe: str = "",
    span_ms: int = 0,
) -> int:
    """
    Number of `period` buckets a `grouping` bin should contain.

    Args:
        period: Bucket granularity of the samples (MINUTE, HOUR, DAY or MONTH).
        grouping: Time bin of the grouping axis, or None when the grouping axis
            is not a time axis (the whole record span is then divided up).
        timeframe: Label of the grouping bin ("YYYY-MM" for months, "YYYY" for
            years); needed for variable-length groupings.
        span_ms: Record time span in ms, used when grouping is None.

    Returns:
        Positive slot count, SLOTS_UNSATISFIABLE for periodic groupings, or
        SLOTS_UNKNOWN for combinations that cannot be counted.
    """
    if grouping is None:
        length = _PERIOD_LENGTH_MS.get(period)
        if length is None:
            return SLOTS_UNKNOWN
        return int(span_ms // length)

    if grouping.is_periodic:
        return SLOTS_UNSATISFIABLE

    if grouping is TimeBin.HOUR:
        if period is TimeBin.MINUTE:
            return 60
    elif grouping is TimeBin.DAY:
        if period is TimeBin.MINUTE:
            return 60 * 24
        if period is TimeBin.HOUR:
            return 24
    elif grouping is TimeBin.MONTH:
        dim = days_in_month(timeframe)
        if period is TimeBin.DAY:
            return dim
        if period is TimeBin.HOUR:
            return dim * 24
        if period is TimeBin.MINUTE:
            return dim * 24 * 60
    elif grouping is TimeBin.YEAR:
        diy = days_in_year(timeframe)
        if period is TimeBin.MONTH:
            return 12
        if period is TimeBin.DAY:
            return diy
        if period is TimeBin.HOUR:
            return diy * 24
        if period is TimeBin.MINUTE:
            return diy * 24 * 60
    return SLOTS_UNKNOWN


def to_utc_naive(values: pd.Series) -> pd.Series:
    """Datetime series in naive UTC; numeric input is read as epoch milliseconds."""
    if pd.api.types.is_numeric_dtype(values) and not pd.api.types.is_bool_dtype(values):
        ts = pd.to_datetime(values, unit="ms", utc=True)
    else:
        ts = pd.to_datetime(values, utc=True)
    return ts.dt.tz_convert(None)


def epoch_ms(ts: pd.Series) -> pd.Series:
    """Naive-UTC datetime series -> int64 epoch milliseconds."""
    return ((ts - pd.Timestamp(0)) // pd.Timedelta(milliseconds=1)).astype("int64")


def bucket_times(ts: pd.Series, time_bin: TimeBin) -> tuple[pd.Series, pd.Series]:
    """
    Bucket a naive-UTC datetime series.

    Returns:
        (keys, labels): int64 world keys and string labels, index aligned with ts.
        Calendar bins use the bucket start in epoch ms as key; periodic bins use
        the ordinal (hour 0-23, weekday 0-6 with Monday 0, month 1-12).
    """
    if time_bin is TimeBin.HOUR_OF_DAY:
        keys = ts.dt.hour.astype("int64")
        return keys, keys.astype(str)
    if time_bin is TimeBin.DAY_OF_WEEK:
        keys = ts.dt.dayofweek.astype("int64")
        return keys, keys.astype(str)
    if time_bin is TimeBin.MONTH_OF_YEAR:
        keys = ts.dt.month.astype("int64")
        return keys, keys.astype(str)

    if time_bin in _FLOOR_FREQ:
        start = ts.dt.floor(_FLOOR_FREQ[time_bin])
    else:
        start = ts.dt.to_period(_PERIOD_FREQ[time_bin]).dt.to_timestamp()
    return epoch_ms(start), start.dt.strftime(time_bin.label_format)


def parse_time_bin(name: str) -> TimeBin:
    """Resolve a TimeBin from its value or name, e.g. "hour" or "HOUR_OF_DAY"."""
    try:
        return TimeBin(name)
    except ValueError:
        return TimeBin[name.upper()]

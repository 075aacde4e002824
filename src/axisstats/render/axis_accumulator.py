"""
Axis accumulation: one unit of render fan-out work.

Resolves an axis expression against the record table into one world key per
record, then feeds the records chunk by chunk into the axis' own
CounterContext. The cancel token is checked at every chunk boundary, so a
superseded render stops within one chunk.

Each AxisAccumulation is written by exactly one worker; results are keyed by
axis expression, so concurrent units never share a structure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Optional

import pandas as pd

from axisstats.errors import AxisExpressionError
from axisstats.render.cancel import CancelToken
from axisstats.render.counter_context import CounterContext, SimpleCounterContext
from axisstats.render.render_state import RECORD_COUNT, AxisExpr, COMPOSITE_DELIM
from axisstats.scaling.policy import WeightSource
from axisstats.scaling.world_key import pack_keys
from axisstats.stats.calendar_slots import bucket_times, epoch_ms, to_utc_naive
from axisstats.utils.logging import get_logger

logger = get_logger(__name__)

DATETIME_LABEL_FORMAT = "%Y-%m-%d %H:%M:%S"
# Used when any key has a sub-second part; %f is trimmed to milliseconds.
DATETIME_MS_LABEL_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

CounterFactory = Callable[[], CounterContext]


@dataclass
class ResolvedAxis:
    """World keys per record for one axis, before counting."""
    keys: pd.Series                       # int64, indexed by record, missing rows dropped
    labels: dict[int, str]                # world key -> display label
    bounds: Optional[tuple[int, int]] = None  # fixed (min, max) for periodic time bins


@dataclass
class AxisAccumulation:
    """Result of accumulating one axis."""
    expr: AxisExpr
    row_keys: pd.Series
    labels: dict[int, str]
    counter: CounterContext
    min_key: Optional[int]
    max_key: Optional[int]
    unmapped: int

    @property
    def keys(self) -> set[int]:
        return {int(k) for k in self.row_keys.unique()}

    def weights(self, source: WeightSource) -> Mapping[str, float]:
        """Per-bin weights from the counter context, keyed by world key as string."""
        if source is WeightSource.ITEM_COUNT:
            return {k: float(v) for k, v in self.counter.item_counts().items()}
        return self.counter.totals()

    def row_labels(self) -> pd.Series:
        """Bin label per mapped record."""
        return self.row_keys.map(self.labels)


def _datetime_labels(ts: pd.Series, keys: pd.Series) -> list[str]:
    """One label per distinct epoch ms key; labels never collide for different keys."""
    if (keys % 1000 != 0).any():
        return ts.dt.strftime(DATETIME_MS_LABEL_FORMAT).str[:-3].tolist()
    return ts.dt.strftime(DATETIME_LABEL_FORMAT).tolist()


def _field_keys(frame: pd.DataFrame, field: str) -> tuple[pd.Series, dict[int, str]]:
    if field not in frame.columns:
        raise AxisExpressionError(f"unknown field {field!r}")
    col = frame[field].dropna()

    if pd.api.types.is_datetime64_any_dtype(col):
        ts = to_utc_naive(col)
        keys = epoch_ms(ts)
        firsts = ~keys.duplicated()
        labels = dict(zip(keys[firsts].tolist(), _datetime_labels(ts[firsts], keys[firsts])))
        return keys, labels

    if pd.api.types.is_bool_dtype(col) or pd.api.types.is_integer_dtype(col):
        keys = col.astype("int64")
    elif pd.api.types.is_float_dtype(col):
        keys = col.round().astype("int64")
    else:
        codes, uniques = pd.factorize(col.astype(str), sort=True)
        keys = pd.Series(codes, index=col.index, dtype="int64")
        return keys, {i: str(u) for i, u in enumerate(uniques)}

    return keys, {int(k): str(int(k)) for k in keys.unique()}


def resolve_axis(frame: pd.DataFrame, expr: AxisExpr) -> ResolvedAxis:
    """
    Compute one world key per record for an axis expression.

    Raises:
        AxisExpressionError: If a referenced field is not a column of frame.
    """
    if expr.time_bin is not None:
        if expr.field not in frame.columns:
            raise AxisExpressionError(f"unknown time field {expr.field!r}")
        ts = to_utc_naive(frame[expr.field].dropna())
        keys, label_series = bucket_times(ts, expr.time_bin)
        firsts = ~keys.duplicated()
        labels = dict(zip(keys[firsts].tolist(), label_series[firsts].tolist()))
        return ResolvedAxis(keys=keys, labels=labels, bounds=expr.time_bin.periodic_range)

    if not expr.is_composite:
        keys, labels = _field_keys(frame, expr.field)
        return ResolvedAxis(keys=keys, labels=labels)

    primary, primary_labels = _field_keys(frame, expr.field)
    sub, sub_labels = _field_keys(frame, expr.sub_field)
    idx = primary.index.intersection(sub.index, sort=False)
    primary = primary.loc[idx]
    sub = sub.loc[idx]
    keys = pd.Series(pack_keys(primary.to_numpy(), sub.to_numpy()), index=idx, dtype="int64")

    pairs = pd.DataFrame({"key": keys, "p": primary, "s": sub}).drop_duplicates("key")
    labels = {
        int(k): f"{primary_labels[int(p)]}{COMPOSITE_DELIM}{sub_labels[int(s)]}"
        for k, p, s in pairs.itertuples(index=False, name=None)
    }
    return ResolvedAxis(keys=keys, labels=labels)


def record_weights(frame: pd.DataFrame, count_by: str) -> pd.Series:
    """Weight each record contributes to its bin total (1.0 per record by default)."""
    if count_by == RECORD_COUNT:
        return pd.Series(1.0, index=frame.index)
    if count_by not in frame.columns:
        raise AxisExpressionError(f"unknown count_by field {count_by!r}")
    return pd.to_numeric(frame[count_by], errors="coerce").fillna(0.0)


def accumulate_axis(
    frame: pd.DataFrame,
    expr: AxisExpr,
    *,
    token: CancelToken,
    count_by: str = RECORD_COUNT,
    chunk_size: int = 4096,
    counter_factory: CounterFactory = SimpleCounterContext,
) -> AxisAccumulation:
    """
    Accumulate one axis: resolve keys, then count records per bin chunk by chunk.

    Raises:
        RenderCancelled: If token is superseded before or during accumulation.
        AxisExpressionError: If the axis references unknown fields.
    """
    token.check()
    resolved = resolve_axis(frame, expr)
    weights = record_weights(frame, count_by)
    counter = counter_factory()
    keys = resolved.keys

    step = max(1, int(chunk_size))
    for start in range(0, len(keys), step):
        token.check()
        chunk = keys.iloc[start:start + step]
        grouped = weights.loc[chunk.index].groupby(chunk.to_numpy(), sort=True)
        totals = grouped.sum()
        sizes = grouped.size()
        for key, total in totals.items():
            counter.count(str(int(key)), float(total), int(sizes[key]))

    if resolved.bounds is not None:
        min_key, max_key = resolved.bounds
    elif len(keys):
        min_key, max_key = int(keys.min()), int(keys.max())
    else:
        min_key = max_key = None

    unmapped = len(frame) - len(keys)
    logger.debug(
        "accumulated axis %r: %d records, %d bins, %d unmapped (render %d)",
        expr.text, len(keys), len(resolved.labels), unmapped, token.render_id,
    )
    return AxisAccumulation(
        expr=expr,
        row_keys=keys,
        labels=resolved.labels,
        counter=counter,
        min_key=min_key,
        max_key=max_key,
        unmapped=unmapped,
    )

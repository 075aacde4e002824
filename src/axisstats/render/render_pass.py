"""
Render pass: one end-to-end recomputation of a visualization's data.

Phases:

    STARTED -> ACCUMULATING -> MAPPING -> FINALIZING -> PUBLISHED
                     \\             \\          \\
                      +-------------+----------+--> CANCELLED

1. ACCUMULATING: one unit of work per distinct axis expression, run on a
   bounded thread pool and joined before mapping starts.
2. MAPPING: compute_mapping() per axis with the axis' scale spec and the
   weights of its counter context.
3. FINALIZING: per x bin statistics or entropy, depending on the mode.

The cancel token is checked before each phase, at every chunk of every
accumulation loop and at every bin while finalizing. A superseded pass returns
None and never exposes partial results.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import pandas as pd

from axisstats.errors import AxisExpressionError, RenderCancelled
from axisstats.render.axis_accumulator import (
    AxisAccumulation,
    CounterFactory,
    accumulate_axis,
)
from axisstats.render.cancel import CancelToken
from axisstats.render.counter_context import SimpleCounterContext
from axisstats.render.render_state import RECORD_COUNT, AggregationMode, AxisExpr, RenderState
from axisstats.scaling.policy import ScaleSpec
from axisstats.scaling.scale_mapper import compute_mapping
from axisstats.stats.bin_entropy import BinEntropy
from axisstats.stats.bin_statistics import BinStat, BinStatistics, stats_table
from axisstats.stats.calendar_slots import bucket_times, epoch_ms, expected_slots, to_utc_naive
from axisstats.stats.periodic import bucket_values, periodic_statistics
from axisstats.utils.logging import get_logger

logger = get_logger(__name__)


class RenderPhase(Enum):
    """Lifecycle of a render pass."""
    STARTED = "started"
    ACCUMULATING = "accumulating"
    MAPPING = "mapping"
    FINALIZING = "finalizing"
    PUBLISHED = "published"
    CANCELLED = "cancelled"


@dataclass
class RenderResult:
    """Everything a panel needs to draw one refresh."""
    render_id: int
    mode: AggregationMode
    x_axis: str
    y_axis: Optional[str]
    mappings: dict[str, dict[int, float]]
    labels: dict[str, dict[int, str]]
    sums: dict[str, float] = field(default_factory=dict)       # SUM mode, by x bin label
    stats: dict[str, BinStat] = field(default_factory=dict)    # box plot modes
    entropy: dict[str, float] = field(default_factory=dict)    # ENTROPY mode
    y_range: tuple[float, float] = (0.0, 0.0)
    warnings: list[str] = field(default_factory=list)
    unmapped_rows: int = 0

    def stats_frame(self) -> pd.DataFrame:
        return stats_table(self.stats)

    def position(self, axis: str, label: str) -> float:
        """Normalized position of a bin label on an axis.

        Raises:
            KeyError: If the axis or label is unknown.
        """
        for key, text in self.labels[axis].items():
            if text == label:
                return self.mappings[axis][key]
        raise KeyError(label)


class RenderPass:
    """Runs one render for a record table and a RenderState."""

    def __init__(
        self,
        frame: pd.DataFrame,
        state: RenderState,
        token: CancelToken,
        *,
        max_workers: int = 4,
        chunk_size: int = 4096,
        counter_factory: CounterFactory = SimpleCounterContext,
    ):
        self.frame = frame
        self.state = state
        self.token = token
        self.max_workers = max(1, int(max_workers))
        self.chunk_size = max(1, int(chunk_size))
        self.counter_factory = counter_factory
        self.phase = RenderPhase.STARTED

    @property
    def render_id(self) -> int:
        return self.token.render_id

    def run(self) -> Optional[RenderResult]:
        """Execute the pass. Returns None when superseded by a newer render."""
        try:
            result = self._run()
        except RenderCancelled:
            self._set_phase(RenderPhase.CANCELLED)
            logger.debug("render %d abandoned", self.render_id)
            return None
        if self.token.cancelled:
            self._set_phase(RenderPhase.CANCELLED)
            logger.debug("render %d superseded before publishing", self.render_id)
            return None
        self._set_phase(RenderPhase.PUBLISHED)
        return result

    def _set_phase(self, phase: RenderPhase) -> None:
        logger.debug("render %d: %s -> %s", self.render_id, self.phase.value, phase.value)
        self.phase = phase

    def _run(self) -> RenderResult:
        self.token.check()
        frame = self.frame.reset_index(drop=True)
        axes = self.state.axes()

        self._set_phase(RenderPhase.ACCUMULATING)
        accumulations = self._accumulate(frame, axes)

        self.token.check()
        self._set_phase(RenderPhase.MAPPING)
        mappings: dict[str, dict[int, float]] = {}
        for expr, spec in self._axis_scales(axes).items():
            acc = accumulations[expr]
            mappings[expr] = compute_mapping(
                spec.policy,
                acc.keys,
                weights=acc.weights(spec.weight_source),
                min_bound=acc.min_key,
                max_bound=acc.max_key,
            )

        self.token.check()
        self._set_phase(RenderPhase.FINALIZING)
        x_acc = accumulations[axes[0].text]
        result = RenderResult(
            render_id=self.render_id,
            mode=self.state.mode,
            x_axis=axes[0].text,
            y_axis=axes[-1].text if self.state.y_axis else None,
            mappings=mappings,
            labels={expr: acc.labels for expr, acc in accumulations.items()},
            unmapped_rows=x_acc.unmapped,
        )
        self._finalize(frame, x_acc, result)
        return result

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def _axis_scales(self, axes: list[AxisExpr]) -> dict[str, ScaleSpec]:
        scales = {axes[0].text: self.state.x_scale}
        if len(axes) > 1:
            scales[axes[1].text] = self.state.y_scale
        return scales

    def _accumulate(self, frame: pd.DataFrame, axes: list[AxisExpr]) -> dict[str, AxisAccumulation]:
        workers = min(self.max_workers, len(axes))
        kwargs = dict(
            token=self.token,
            count_by=self.state.count_by,
            chunk_size=self.chunk_size,
            counter_factory=self.counter_factory,
        )
        if workers == 1:
            return {expr.text: accumulate_axis(frame, expr, **kwargs) for expr in axes}

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"render-{self.render_id}") as pool:
            futures = {expr.text: pool.submit(accumulate_axis, frame, expr, **kwargs) for expr in axes}
            wait(futures.values())
        # result() re-raises RenderCancelled or errors from the workers.
        return {text: fut.result() for text, fut in futures.items()}

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def _finalize(self, frame: pd.DataFrame, x_acc: AxisAccumulation, result: RenderResult) -> None:
        mode = self.state.mode
        bins = x_acc.row_labels()

        if mode is AggregationMode.SUM:
            totals = x_acc.counter.totals()
            result.sums = {x_acc.labels[int(k)]: v for k, v in totals.items()}
            result.y_range = (0.0, float(x_acc.counter.total_maximum()))
            return

        if mode is AggregationMode.ENTROPY:
            values = self._entropy_values(frame, bins.index)
            entropies: dict[str, float] = {}
            for label, sub in values.groupby(bins.loc[values.index], sort=True):
                self.token.check()
                ent = BinEntropy(str(label))
                for v in sub.tolist():
                    ent.add(v)
                entropies[str(label)] = ent.calc()
            result.entropy = entropies
            result.y_range = _value_range(entropies.values())
            return

        if mode is AggregationMode.BOX_PLOT:
            values = self._numeric_values(frame, bins.index)
            accumulators: dict[str, BinStatistics] = {}
            for label, sub in values.groupby(bins.loc[values.index], sort=True):
                self.token.check()
                bs = BinStatistics(str(label))
                bs.extend(sub.tolist())
                accumulators[str(label)] = bs
        else:
            accumulators, warnings = self._periodic(frame, x_acc, bins)
            result.warnings.extend(warnings)

        stats: dict[str, BinStat] = {}
        for label, bs in accumulators.items():
            self.token.check()
            stats[label] = bs.calc()
        result.stats = stats
        result.y_range = _value_range(
            [s.min for s in stats.values()] + [s.max for s in stats.values()]
        )

    def _periodic(
        self,
        frame: pd.DataFrame,
        x_acc: AxisAccumulation,
        bins: pd.Series,
    ) -> tuple[dict[str, BinStatistics], list[str]]:
        time_field = self.state.time_field
        if time_field not in frame.columns:
            raise AxisExpressionError(f"unknown time field {time_field!r}")
        period = self.state.mode.period

        all_times = frame[time_field].dropna()
        ts_all = to_utc_naive(all_times)
        span_ms = int(epoch_ms(ts_all).max() - epoch_ms(ts_all).min()) if len(ts_all) else 0

        rows = bins.index.intersection(all_times.index, sort=False)
        _, buckets = bucket_times(ts_all.loc[rows], period)
        values, categorical = self._values(frame, rows)
        per_bucket = bucket_values(bins.loc[rows], buckets, values, categorical=categorical)

        grouping = x_acc.expr.time_bin

        def slots_for_bin(label: str) -> int:
            return expected_slots(period, grouping, label, span_ms)

        return periodic_statistics(per_bucket, slots_for_bin, checkpoint=self.token.check)

    def _values(self, frame: pd.DataFrame, rows: pd.Index) -> tuple[pd.Series, bool]:
        """Observed value per record and whether it is categorical."""
        field_name = self.state.value_field
        if field_name == RECORD_COUNT:
            return pd.Series(1, index=rows, dtype="int64"), False
        if field_name not in frame.columns:
            raise AxisExpressionError(f"unknown value field {field_name!r}")
        col = frame.loc[rows, field_name]
        if pd.api.types.is_datetime64_any_dtype(col):
            col = col.dropna()
            return epoch_ms(to_utc_naive(col)), False
        if pd.api.types.is_numeric_dtype(col):
            return col, False
        return col, True

    def _numeric_values(self, frame: pd.DataFrame, rows: pd.Index) -> pd.Series:
        values, categorical = self._values(frame, rows)
        if categorical:
            raise AxisExpressionError(
                f"box plot needs a numeric value field, {self.state.value_field!r} is categorical"
            )
        return values.dropna().round().astype("int64")

    def _entropy_values(self, frame: pd.DataFrame, rows: pd.Index) -> pd.Series:
        values, categorical = self._values(frame, rows)
        values = values.dropna()
        if categorical:
            codes, _ = pd.factorize(values.astype(str), sort=True)
            return pd.Series(codes, index=values.index, dtype="int64")
        return values.round().astype("int64")


def _value_range(values) -> tuple[float, float]:
    values = list(values)
    if not values:
        return (0.0, 0.0)
    return (float(min(values)), float(max(values)))

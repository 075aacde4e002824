"""Render state for one visualization refresh.

This module defines the AggregationMode enum, axis expressions, and the
RenderState dataclass describing what a render pass should compute.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from axisstats.errors import AxisExpressionError
from axisstats.scaling.policy import ScaleSpec
from axisstats.stats.calendar_slots import TimeBin, parse_time_bin

# Sentinel field meaning "one per record" for value_field / count_by.
RECORD_COUNT = "#records"

# Separators inside axis expressions: "field|sub" and "field@bin".
COMPOSITE_DELIM = "|"
TIME_BIN_DELIM = "@"


class AggregationMode(Enum):
    """Enumeration of per-bin aggregation modes."""
    SUM = "sum"
    ENTROPY = "entropy"
    BOX_PLOT = "box_plot"
    BOX_PLOT_PER_MINUTE = "box_plot_per_minute"
    BOX_PLOT_PER_HOUR = "box_plot_per_hour"
    BOX_PLOT_PER_DAY = "box_plot_per_day"
    BOX_PLOT_PER_MONTH = "box_plot_per_month"

    @property
    def is_box_plot(self) -> bool:
        return self.value.startswith("box_plot")

    @property
    def period(self) -> Optional[TimeBin]:
        """Calendar bucket of periodic box plot modes, None otherwise."""
        return _MODE_PERIODS.get(self)


_MODE_PERIODS: dict[AggregationMode, TimeBin] = {
    AggregationMode.BOX_PLOT_PER_MINUTE: TimeBin.MINUTE,
    AggregationMode.BOX_PLOT_PER_HOUR: TimeBin.HOUR,
    AggregationMode.BOX_PLOT_PER_DAY: TimeBin.DAY,
    AggregationMode.BOX_PLOT_PER_MONTH: TimeBin.MONTH,
}


@dataclass(frozen=True)
class AxisExpr:
    """A parsed axis expression: a field, a composite "field|sub", or a time bin "field@bin"."""
    field: str
    sub_field: Optional[str] = None
    time_bin: Optional[TimeBin] = None

    @property
    def is_composite(self) -> bool:
        return self.sub_field is not None

    @property
    def text(self) -> str:
        if self.sub_field is not None:
            return f"{self.field}{COMPOSITE_DELIM}{self.sub_field}"
        if self.time_bin is not None:
            return f"{self.field}{TIME_BIN_DELIM}{self.time_bin.value}"
        return self.field

    @classmethod
    def parse(cls, expr: str) -> "AxisExpr":
        """
        Parse an axis expression.

        Raises:
            AxisExpressionError: If the expression is empty, mixes a composite
                with a time bin, or names an unknown time bin.
        """
        expr = (expr or "").strip()
        if not expr:
            raise AxisExpressionError("empty axis expression")
        if COMPOSITE_DELIM in expr and TIME_BIN_DELIM in expr:
            raise AxisExpressionError(f"axis {expr!r} cannot be both composite and time-binned")
        if COMPOSITE_DELIM in expr:
            field, _, sub = expr.partition(COMPOSITE_DELIM)
            if not field or not sub:
                raise AxisExpressionError(f"malformed composite axis {expr!r}")
            return cls(field=field, sub_field=sub)
        if TIME_BIN_DELIM in expr:
            field, _, bin_name = expr.partition(TIME_BIN_DELIM)
            try:
                time_bin = parse_time_bin(bin_name)
            except KeyError:
                raise AxisExpressionError(f"unknown time bin {bin_name!r} in axis {expr!r}") from None
            if not field:
                raise AxisExpressionError(f"malformed time axis {expr!r}")
            return cls(field=field, time_bin=time_bin)
        return cls(field=expr)


@dataclass
class RenderState:
    """Configuration of a single render pass.

    x_axis always drives the bins. y_axis is optional and only mapped
    (scatter/rug style panels); statistics always aggregate value_field per
    x bin.
    """
    x_axis: str
    y_axis: Optional[str] = None
    x_scale: ScaleSpec = ScaleSpec()
    y_scale: ScaleSpec = ScaleSpec()
    mode: AggregationMode = AggregationMode.SUM
    value_field: str = RECORD_COUNT   # observed per record for stats/entropy
    count_by: str = RECORD_COUNT      # weight summed into the counter context
    time_field: str = "timestamp"     # used by periodic box plot modes

    def axes(self) -> list[AxisExpr]:
        """Distinct axis expressions referenced by this state, x first."""
        result = [AxisExpr.parse(self.x_axis)]
        if self.y_axis:
            y = AxisExpr.parse(self.y_axis)
            if y != result[0]:
                result.append(y)
        return result

    def to_dict(self) -> dict[str, Any]:
        """Serialize RenderState to a JSON-friendly dictionary."""
        return {
            "x_axis": self.x_axis,
            "y_axis": self.y_axis,
            "x_scale": self.x_scale.label,
            "y_scale": self.y_scale.label,
            "mode": self.mode.value,
            "value_field": self.value_field,
            "count_by": self.count_by,
            "time_field": self.time_field,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderState":
        """Deserialize RenderState from a dictionary.

        Raises:
            ValueError: If x_axis is missing or mode is unknown.
            UnsupportedScalePolicyError: If a scale label is unknown.
        """
        x_axis = data.get("x_axis")
        if not x_axis:
            raise ValueError("RenderState requires 'x_axis'")
        return cls(
            x_axis=str(x_axis),
            y_axis=data.get("y_axis"),  # Can be None
            x_scale=ScaleSpec.from_label(data.get("x_scale", "Linear")),
            y_scale=ScaleSpec.from_label(data.get("y_scale", "Linear")),
            mode=AggregationMode(data.get("mode", AggregationMode.SUM.value)),
            value_field=str(data.get("value_field", RECORD_COUNT)),
            count_by=str(data.get("count_by", RECORD_COUNT)),
            time_field=str(data.get("time_field", "timestamp")),
        )

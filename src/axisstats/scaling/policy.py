"""Scale policies for converting world keys into normalized axis positions.

The two "sort by item count" variants offered by panels are not separate
policies: they are the sort policies fed by a different weight source. A
ScaleSpec carries both halves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from axisstats.errors import UnsupportedScalePolicyError


class ScalePolicy(Enum):
    """Enumeration of scaling policies."""
    LINEAR = "linear"
    LOG = "log"
    EQUAL_RANK = "equal_rank"
    SORT_ASCENDING = "sort_ascending"
    SORT_DESCENDING = "sort_descending"

    @property
    def uses_weights(self) -> bool:
        return self in (ScalePolicy.SORT_ASCENDING, ScalePolicy.SORT_DESCENDING)

    @property
    def is_monotonic_in_key(self) -> bool:
        return not self.uses_weights

    @classmethod
    def coerce(cls, value: Union["ScalePolicy", "ScaleSpec", str]) -> "ScalePolicy":
        """Resolve a policy, spec, enum value, enum name or legacy label.

        Raises:
            UnsupportedScalePolicyError: If value names no known policy.
        """
        if isinstance(value, ScalePolicy):
            return value
        if isinstance(value, ScaleSpec):
            return value.policy
        if isinstance(value, str):
            if value in _LEGACY_LABELS:
                return _LEGACY_LABELS[value].policy
            try:
                return cls(value)
            except ValueError:
                pass
            try:
                return cls[value.upper()]
            except KeyError:
                pass
        raise UnsupportedScalePolicyError(value)


class WeightSource(Enum):
    """Where the sort policies take their per-key weight from."""
    SUM = "sum"                # CounterContext totals per bin
    ITEM_COUNT = "item_count"  # number of records per bin


@dataclass(frozen=True)
class ScaleSpec:
    """A scale policy plus the weight source used by the sort policies."""
    policy: ScalePolicy = ScalePolicy.LINEAR
    weight_source: WeightSource = WeightSource.SUM

    @property
    def label(self) -> str:
        """Short UI label, e.g. "Sort Rec (R)"."""
        for label, spec in _LEGACY_LABELS.items():
            if spec == self:
                return label
        # Non-sort policies ignore the weight source.
        return _LEGACY_LABELS_BY_POLICY[self.policy]

    @classmethod
    def from_label(cls, label: Union[str, "ScaleSpec", ScalePolicy]) -> "ScaleSpec":
        """Parse a UI label or policy tag into a ScaleSpec.

        Raises:
            UnsupportedScalePolicyError: If label is not understood.
        """
        if isinstance(label, ScaleSpec):
            return label
        if isinstance(label, str) and label in _LEGACY_LABELS:
            return _LEGACY_LABELS[label]
        return cls(policy=ScalePolicy.coerce(label))


_LEGACY_LABELS: dict[str, ScaleSpec] = {
    "Linear": ScaleSpec(ScalePolicy.LINEAR),
    "Log": ScaleSpec(ScalePolicy.LOG),
    "Equal": ScaleSpec(ScalePolicy.EQUAL_RANK),
    "Sort": ScaleSpec(ScalePolicy.SORT_ASCENDING, WeightSource.SUM),
    "Sort (R)": ScaleSpec(ScalePolicy.SORT_DESCENDING, WeightSource.SUM),
    "Sort Rec": ScaleSpec(ScalePolicy.SORT_ASCENDING, WeightSource.ITEM_COUNT),
    "Sort Rec (R)": ScaleSpec(ScalePolicy.SORT_DESCENDING, WeightSource.ITEM_COUNT),
}

_LEGACY_LABELS_BY_POLICY: dict[ScalePolicy, str] = {
    ScalePolicy.LINEAR: "Linear",
    ScalePolicy.LOG: "Log",
    ScalePolicy.EQUAL_RANK: "Equal",
    ScalePolicy.SORT_ASCENDING: "Sort",
    ScalePolicy.SORT_DESCENDING: "Sort (R)",
}


def all_scale_labels() -> list[str]:
    """Labels for every scale choice, in menu order."""
    return list(_LEGACY_LABELS)


def simple_scale_labels() -> list[str]:
    """Labels for the scales that need no weights."""
    return [label for label, spec in _LEGACY_LABELS.items() if not spec.policy.uses_weights]

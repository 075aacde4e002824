"""Exception hierarchy for axisstats.

Configuration bugs (unknown scale policy, malformed axis expression) raise
immediately. Data conditions such as an empty key set or ``min == max`` have
defined fallbacks and never raise.
"""

from __future__ import annotations


class AxisStatsError(Exception):
    """Base class for all axisstats errors."""


class UnsupportedScalePolicyError(AxisStatsError, NotImplementedError):
    """Raised for a scale policy tag that is not part of ScalePolicy."""

    def __init__(self, policy: object):
        self.policy = policy
        super().__init__(f"Unsupported scale policy {policy!r}")


class BinFinalizedError(AxisStatsError, RuntimeError):
    """Raised when a sample is added to a bin whose statistics were already calculated."""


class EmptyBinError(AxisStatsError, ValueError):
    """Raised when statistics are requested for a bin without samples."""


class AxisExpressionError(AxisStatsError, ValueError):
    """Raised for an axis expression that cannot be resolved against the record table."""


class RenderCancelled(AxisStatsError):
    """Raised inside a render pass when its render id has been superseded.

    Used for control flow only; RenderPass.run() converts it into a ``None`` result.
    """

    def __init__(self, render_id: int):
        self.render_id = render_id
        super().__init__(f"render {render_id} superseded")

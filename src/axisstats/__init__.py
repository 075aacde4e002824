"""
axisstats: axis scaling and per-bin statistics for record visualizations.

This package provides:
- compute_mapping: world keys -> normalized [0, 1] axis positions
- BinStatistics / BinEntropy: per-bin order statistics and Shannon entropy
- Renderer / RenderPass: cancellable render passes over a pandas record table
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from axisstats.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library (imported by other applications), logging is
automatically handled by the parent application's configuration.
"""

from axisstats.utils.logging import configure_logging, get_logger, install_null_handler

from axisstats.errors import (
    AxisExpressionError,
    AxisStatsError,
    BinFinalizedError,
    EmptyBinError,
    UnsupportedScalePolicyError,
)
from axisstats.render import AggregationMode, RenderResult, RenderState, Renderer
from axisstats.scaling import ScalePolicy, ScaleSpec, WeightSource, compute_mapping
from axisstats.settings import EngineSettings
from axisstats.stats import BinEntropy, BinStat, BinStatistics, TimeBin

# Silent unless the host application (or configure_logging()) adds handlers.
install_null_handler()

__all__ = [
    "AggregationMode",
    "AxisExpressionError",
    "AxisStatsError",
    "BinEntropy",
    "BinFinalizedError",
    "BinStat",
    "BinStatistics",
    "EmptyBinError",
    "EngineSettings",
    "RenderResult",
    "RenderState",
    "Renderer",
    "ScalePolicy",
    "ScaleSpec",
    "TimeBin",
    "UnsupportedScalePolicyError",
    "WeightSource",
    "compute_mapping",
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"

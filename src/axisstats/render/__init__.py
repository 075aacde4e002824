"""Render passes: state, cancellation, per-axis accumulation and the renderer."""

from axisstats.render.cancel import CancelToken, RenderTracker
from axisstats.render.counter_context import CounterContext, SimpleCounterContext
from axisstats.render.render_pass import RenderPass, RenderPhase, RenderResult
from axisstats.render.render_state import AggregationMode, AxisExpr, RenderState
from axisstats.render.renderer import Renderer

__all__ = [
    "AggregationMode",
    "AxisExpr",
    "CancelToken",
    "CounterContext",
    "RenderPass",
    "RenderPhase",
    "RenderResult",
    "RenderState",
    "RenderTracker",
    "Renderer",
    "SimpleCounterContext",
]

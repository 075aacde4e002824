"""Renderer: issues render ids, runs render passes and keeps the latest result."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import pandas as pd

from axisstats.render.axis_accumulator import CounterFactory
from axisstats.render.cancel import CancelToken, RenderTracker
from axisstats.render.counter_context import SimpleCounterContext
from axisstats.render.render_pass import RenderPass, RenderResult
from axisstats.render.render_state import RenderState
from axisstats.settings import EngineSettings
from axisstats.utils.logging import get_logger

logger = get_logger(__name__)


class Renderer:
    """
    Owns the render id sequence of one visualization.

    Every render() or submit() supersedes whatever pass is still running.
    Only a pass whose id is still current when it finishes becomes `latest`.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        *,
        counter_factory: CounterFactory = SimpleCounterContext,
    ):
        self.settings = settings if settings is not None else EngineSettings()
        self.counter_factory = counter_factory
        self.tracker = RenderTracker()
        self._lock = threading.Lock()
        self._latest: Optional[RenderResult] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def latest(self) -> Optional[RenderResult]:
        """Last published result, None before the first successful render."""
        return self._latest

    def render(self, frame: pd.DataFrame, state: RenderState) -> Optional[RenderResult]:
        """Run a render synchronously. Returns None if it was superseded meanwhile."""
        return self._run(frame, state, self.tracker.issue())

    def submit(self, frame: pd.DataFrame, state: RenderState) -> "Future[Optional[RenderResult]]":
        """Run a render on the background executor.

        The render id is issued here, so submitting supersedes in-flight passes
        immediately, even ones still waiting for a worker.
        """
        token = self.tracker.issue()
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="axisstats-render")
            executor = self._executor
        return executor.submit(self._run, frame, state, token)

    def cancel(self) -> None:
        """Supersede in-flight passes without starting a new one."""
        retired = self.tracker.supersede()
        logger.info("cancelled renders before id %d", retired)

    def close(self) -> None:
        """Cancel in-flight passes and shut down the background executor."""
        self.cancel()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def __enter__(self) -> "Renderer":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _set_latest(self, result: RenderResult) -> None:
        self._latest = result

    def _run(self, frame: pd.DataFrame, state: RenderState, token: CancelToken) -> Optional[RenderResult]:
        render_pass = RenderPass(
            frame,
            state,
            token,
            max_workers=self.settings.max_workers,
            chunk_size=self.settings.chunk_size,
            counter_factory=self.counter_factory,
        )
        result = render_pass.run()
        if result is None:
            return None
        # A newer pass may have been issued between run() returning and here.
        if not self.tracker.publish_if_current(token.render_id, lambda: self._set_latest(result)):
            logger.debug("render %d finished after being superseded", token.render_id)
            return None
        logger.info(
            "published render %d: mode=%s x=%r bins=%d",
            result.render_id, result.mode.value, result.x_axis, len(result.labels[result.x_axis]),
        )
        return result

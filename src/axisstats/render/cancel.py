"""Cooperative cancellation of render passes by render id.

A RenderTracker hands out monotonically increasing render ids. Issuing a new
id is the only way to cancel: every pass holding an older id sees its token
go invalid at its next checkpoint and abandons its work.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable

from axisstats.errors import RenderCancelled


class RenderTracker:
    """Issues render ids and remembers which one is current."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current = 0

    @property
    def current_id(self) -> int:
        return self._current

    def issue(self) -> "CancelToken":
        """Start a new render: supersede all in-flight passes and return the new token."""
        with self._lock:
            self._current += 1
            return CancelToken(render_id=self._current, tracker=self)

    def supersede(self) -> int:
        """Cancel in-flight passes without starting a new one. Returns the retired id."""
        with self._lock:
            self._current += 1
            return self._current

    def is_current(self, render_id: int) -> bool:
        return render_id == self._current

    def publish_if_current(self, render_id: int, publish: Callable[[], None]) -> bool:
        """Call `publish` only while `render_id` is current, atomically with issue()/supersede().

        Returns True if `publish` ran.
        """
        with self._lock:
            if render_id != self._current:
                return False
            publish()
            return True


@dataclass(frozen=True)
class CancelToken:
    """Cooperative cancellation token for one render pass."""
    render_id: int
    tracker: RenderTracker

    @property
    def cancelled(self) -> bool:
        return not self.tracker.is_current(self.render_id)

    def check(self) -> None:
        """Raise RenderCancelled if this render has been superseded."""
        if self.cancelled:
            raise RenderCancelled(self.render_id)

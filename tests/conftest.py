"""Shared fixtures: a small record table and a render tracker."""

from __future__ import annotations

import pandas as pd
import pytest

from axisstats.render.cancel import RenderTracker


@pytest.fixture
def records() -> pd.DataFrame:
    """Eight connection records; one has no host."""
    return pd.DataFrame(
        {
            "timestamp": pd.to_datetime(
                [
                    "2024-03-01 00:05",
                    "2024-03-01 00:40",
                    "2024-03-01 01:10",
                    "2024-03-01 01:20",
                    "2024-03-01 03:00",
                    "2024-03-02 00:30",
                    "2024-03-02 05:45",
                    "2024-03-02 05:50",
                ]
            ),
            "host": ["b", "a", "b", "c", "b", "a", None, "c"],
            "port": [80, 443, 80, 22, 8080, 443, 80, 22],
            "bytes": [100, 250, 300, 50, 20, 400, 10, 70],
            "latency": [1.2, 3.7, 2.0, 9.9, 0.4, 5.1, 7.0, 8.6],
            "status": ["ok", "ok", "err", "ok", "ok", "timeout", "ok", "ok"],
        }
    )


@pytest.fixture
def tracker() -> RenderTracker:
    return RenderTracker()

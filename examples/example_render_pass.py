"""
Render a synthetic connection log under a few scale policies and aggregation modes.

Demonstrates:
- SUM mode with a descending "Sort (R)" x scale
- a composite "host|port" axis
- a periodic box plot (records per hour, zero filled per day)
- cancellation of an in-flight render by a newer one

Run:
    python examples/example_render_pass.py
"""

import numpy as np
import pandas as pd

from axisstats import AggregationMode, Renderer, RenderState, ScaleSpec
from axisstats.utils.logging import configure_logging, get_logger

configure_logging(level="INFO")
logger = get_logger(__name__)


def make_records(n: int = 5000, seed: int = 0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    start = pd.Timestamp("2024-02-27")
    offsets = pd.to_timedelta(rng.integers(0, 4 * 24 * 3600, size=n), unit="s")
    return pd.DataFrame(
        {
            "timestamp": start + offsets,
            "host": rng.choice(["alpha", "beta", "gamma", "delta"], size=n, p=[0.4, 0.3, 0.2, 0.1]),
            "port": rng.choice([22, 80, 443, 8080], size=n),
            "bytes": rng.integers(40, 1500, size=n),
        }
    )


def main() -> None:
    records = make_records()

    with Renderer() as renderer:
        result = renderer.render(
            records,
            RenderState(x_axis="host", x_scale=ScaleSpec.from_label("Sort (R)"), count_by="bytes"),
        )
        for label in sorted(result.sums, key=lambda lab: result.position("host", lab)):
            print(f"{label:>6}  pos={result.position('host', label):.2f}  bytes={result.sums[label]:.0f}")

        result = renderer.render(records, RenderState(x_axis="host|port", y_axis="timestamp@hour_of_day"))
        print(f"composite axis bins: {len(result.mappings['host|port'])}")

        result = renderer.render(
            records,
            RenderState(x_axis="timestamp@day", mode=AggregationMode.BOX_PLOT_PER_HOUR),
        )
        print(result.stats_frame().to_string(index=False))
        if result.warnings:
            logger.warning("warnings: %s", result.warnings)

        stale = renderer.submit(records, RenderState(x_axis="port", mode=AggregationMode.BOX_PLOT, value_field="bytes"))
        fresh = renderer.submit(records, RenderState(x_axis="port", mode=AggregationMode.ENTROPY, value_field="host"))
        print(f"superseded render returned: {stale.result()}")
        print(f"entropy per port: {fresh.result().entropy}")


if __name__ == "__main__":
    main()

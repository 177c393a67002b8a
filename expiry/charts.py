from __future__ import annotations

from typing import Any, Dict, Mapping

import altair as alt
import pandas as pd

from expiry.classify import BUCKET_COLORS, BUCKET_ORDER

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def bucket_bar_chart(bucket_counts: Mapping[str, int], *, height: int = 320) -> alt.Chart:
    df = pd.DataFrame(
        {
            "bucket": list(BUCKET_ORDER),
            "contracts": [int(bucket_counts.get(b, 0)) for b in BUCKET_ORDER],
        }
    )
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("bucket:N", title=None, sort=list(BUCKET_ORDER), axis=alt.Axis(labelAngle=0)),
            y=alt.Y("contracts:Q", title="Number of Contracts", axis=alt.Axis(tickMinStep=1, gridDash=[4, 4])),
            color=alt.Color(
                "bucket:N",
                scale=alt.Scale(domain=list(BUCKET_ORDER), range=[BUCKET_COLORS[b] for b in BUCKET_ORDER]),
                legend=None,
            ),
            tooltip=[alt.Tooltip("bucket:N", title="Status"), alt.Tooltip("contracts:Q", title="Contracts", format=",")],
        )
        .properties(height=height)
    )

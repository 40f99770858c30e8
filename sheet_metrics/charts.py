from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

GROWTH_LABELS = {"revenue_growth_pct": "Revenue %", "profit_growth_pct": "Profit %"}
# Company labels stop being readable past this many bars.
MAX_LABELLED_COMPANIES = 10


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def unique_labels(names) -> list:
    """Suffix repeated company names ("Acme", "Acme (2)") so every row keeps its own bar."""
    seen: Dict[str, int] = {}
    labels = []
    for name in names:
        seen[name] = seen.get(name, 0) + 1
        labels.append(name if seen[name] == 1 else f"{name} ({seen[name]})")
    return labels


def growth_bar_chart(series_df: pd.DataFrame) -> alt.Chart:
    wide = series_df.assign(label=unique_labels(series_df["name"].tolist()))
    long_df = wide.melt(
        id_vars=["name", "label"],
        value_vars=list(GROWTH_LABELS),
        var_name="metric",
        value_name="pct",
    )
    long_df["metric"] = long_df["metric"].map(GROWTH_LABELS)
    show_labels = len(series_df) <= MAX_LABELLED_COMPANIES
    hover = alt.selection_point(fields=["metric"], on="mouseover", empty="all")
    return (
        alt.Chart(long_df)
        .mark_bar(size=20)
        .encode(
            x=alt.X("label:N", title=None, sort=None, axis=alt.Axis(labels=show_labels, ticks=show_labels, labelAngle=-30)),
            xOffset=alt.XOffset("metric:N"),
            y=alt.Y("pct:Q", title="YoY Growth (%)", axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("metric:N", title="Metric"),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.3)),
            tooltip=[
                alt.Tooltip("name:N", title="Company"),
                alt.Tooltip("metric:N", title="Metric"),
                alt.Tooltip("pct:Q", title="Growth", format=".2f"),
            ],
        )
        .add_params(hover)
        .properties(height=300)
    )


def sector_bar_chart(sector_df: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(sector_df)
        .mark_bar()
        .encode(
            x=alt.X("count:Q", title="Companies", axis=alt.Axis(format="d", tickMinStep=1)),
            y=alt.Y("sector:N", title=None, sort=None),
            tooltip=["sector", "count"],
        )
        .properties(height=max(120, 24 * len(sector_df)))
    )

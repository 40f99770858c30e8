from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from sheet_metrics.aggregate import chart_series, summarize, top_by_margin_expansion
from sheet_metrics.charts import growth_bar_chart, sector_bar_chart, to_vega_spec
from sheet_metrics.formatting import format_pct_2, format_refresh_caption, format_sector_chips
from sheet_metrics.normalize import cell_text
from sheet_metrics.refresh import RefreshStatus, Snapshot
from sheet_metrics.settings import DashboardSettings


def compute_table(snapshot: Snapshot) -> Dict[str, Any]:
    headers = list(dict.fromkeys(snapshot.headers))
    rows = [{h: cell_text(r.get(h)) for h in headers} for r in snapshot.records]
    return {"headers": headers, "rows": rows}


def compute_overview(
    settings: DashboardSettings,
    snapshot: Snapshot,
    status: Optional[RefreshStatus] = None,
) -> Dict[str, Any]:
    status = status or RefreshStatus(fetched_at=snapshot.fetched_at)
    entries = list(snapshot.entries)
    stats = summarize(entries)
    series = chart_series(entries)
    top = top_by_margin_expansion(entries, settings.top_n)

    charts: Dict[str, Any] = {}
    if series:
        charts["growth"] = to_vega_spec(growth_bar_chart(pd.DataFrame(series)))
    if stats.sector_counts:
        sector_df = pd.DataFrame(list(stats.sector_counts.items()), columns=["sector", "count"])
        charts["sectors"] = to_vega_spec(sector_bar_chart(sector_df))

    return {
        "settings": settings.public_dict(),
        "caption": format_refresh_caption(settings.poll_interval_ms),
        "status": asdict(status),
        "kpis": {
            "count": stats.count,
            "avg_revenue_growth_pct": stats.avg_revenue_growth_pct,
            "avg_profit_growth_pct": stats.avg_profit_growth_pct,
            "avg_revenue_growth_label": format_pct_2(stats.avg_revenue_growth_pct),
            "avg_profit_growth_label": format_pct_2(stats.avg_profit_growth_pct),
            "sector_chips": format_sector_chips(stats),
        },
        "sector_counts": stats.sector_counts,
        "chart_series": series,
        "top_margin": [asdict(e) for e in top],
        "table": compute_table(snapshot),
        "charts": charts,
    }

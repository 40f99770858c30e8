from __future__ import annotations

from typing import List, Optional

import pandas as pd

from sheet_metrics.aggregate import SECTOR_CHIPS_DEFAULT, SummaryStats, top_sectors


def format_pct_2(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):.2f}%"


def format_market_cap(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    v = float(value)
    for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M")):
        if abs(v) >= threshold:
            return f"${v / threshold:,.2f}{suffix}"
    return f"${v:,.0f}"


def format_refresh_caption(poll_interval_ms: int) -> str:
    return f"auto-refresh every {round(poll_interval_ms / 1000)}s"


def format_sector_chips(stats: SummaryStats, k: int = SECTOR_CHIPS_DEFAULT) -> List[str]:
    return [f"{sector} ({count})" for sector, count in top_sectors(stats, k)]


def format_fetched_at(ts: Optional[pd.Timestamp]) -> str:
    if ts is None or pd.isna(ts):
        return "never"
    return ts.strftime("%Y-%m-%d %H:%M:%S UTC")

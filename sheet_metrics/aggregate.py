from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from sheet_metrics.normalize import NormalizedEntry


TOP_MARGIN_DEFAULT = 5
SECTOR_CHIPS_DEFAULT = 3


@dataclass(frozen=True)
class SummaryStats:
    count: int = 0
    avg_revenue_growth_pct: float = 0.0
    avg_profit_growth_pct: float = 0.0
    sector_counts: Dict[str, int] = field(default_factory=dict)


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def summarize(entries: Sequence[NormalizedEntry]) -> SummaryStats:
    sector_counts: Dict[str, int] = {}
    for entry in entries:
        sector_counts[entry.sector] = sector_counts.get(entry.sector, 0) + 1
    return SummaryStats(
        count=len(entries),
        avg_revenue_growth_pct=_mean([e.revenue_growth_pct for e in entries]),
        avg_profit_growth_pct=_mean([e.profit_growth_pct for e in entries]),
        sector_counts=sector_counts,
    )


def top_by_margin_expansion(entries: Sequence[NormalizedEntry], n: int = TOP_MARGIN_DEFAULT) -> List[NormalizedEntry]:
    """Highest margin expansion first; ties keep their input order."""
    if n <= 0:
        return []
    ranked = sorted(entries, key=lambda e: e.margin_expansion_pct, reverse=True)
    return ranked[:n]


def chart_series(entries: Sequence[NormalizedEntry]) -> List[Dict[str, Any]]:
    return [
        {
            "name": e.name,
            "revenue_growth_pct": e.revenue_growth_pct,
            "profit_growth_pct": e.profit_growth_pct,
        }
        for e in entries
    ]


def top_sectors(stats: SummaryStats, k: int = SECTOR_CHIPS_DEFAULT) -> List[Tuple[str, int]]:
    return list(stats.sector_counts.items())[: max(0, k)]

import pandas as pd

from sheet_metrics.charts import growth_bar_chart, to_vega_spec, unique_labels
from sheet_metrics.formatting import format_market_cap, format_pct_2, format_refresh_caption
from sheet_metrics.overview import compute_overview, compute_table
from sheet_metrics.refresh import RefreshStatus, Snapshot, build_snapshot
from sheet_metrics.settings import normalize_settings
from tests.helpers.fake_sheets import FULL_GRID


SETTINGS = normalize_settings({"sheet_id": "sheet", "api_key": "secret", "top_n": 2})


def test_compute_overview_payload():
    snapshot = build_snapshot(FULL_GRID, fetched_at=pd.Timestamp("2024-05-01", tz="UTC"))
    payload = compute_overview(SETTINGS, snapshot)

    kpis = payload["kpis"]
    assert kpis["count"] == 4
    assert kpis["avg_revenue_growth_label"] == "4.88%"
    assert kpis["avg_profit_growth_label"] == "5.25%"
    assert kpis["sector_chips"] == ["Industrials (1)", "Tech (2)", "Other (1)"]
    assert payload["sector_counts"] == {"Industrials": 1, "Tech": 2, "Other": 1}
    assert [e["name"] for e in payload["top_margin"]] == ["Umbrella", "Acme"]
    assert payload["caption"] == "auto-refresh every 30s"
    assert payload["status"]["fetched_at"] == snapshot.fetched_at
    assert "api_key" not in payload["settings"]
    assert set(payload["charts"]) == {"growth", "sectors"}
    assert payload["charts"]["growth"]["mark"]["type"] == "bar"


def test_compute_overview_empty_snapshot():
    payload = compute_overview(SETTINGS, Snapshot(), RefreshStatus(last_error="boom"))
    assert payload["kpis"]["count"] == 0
    assert payload["kpis"]["avg_revenue_growth_label"] == "0.00%"
    assert payload["charts"] == {}
    assert payload["top_margin"] == []
    assert payload["table"] == {"headers": [], "rows": []}
    assert payload["status"]["last_error"] == "boom"


def test_compute_table_renders_raw_cells():
    snapshot = build_snapshot([["Company name", "Market cap"], ["Acme", 1500.0], ["Short"]])
    assert compute_table(snapshot) == {
        "headers": ["Company name", "Market cap"],
        "rows": [{"Company name": "Acme", "Market cap": "1500"}, {"Company name": "Short", "Market cap": ""}],
    }


def test_formatting_helpers():
    assert format_pct_2(5.75) == "5.75%"
    assert format_pct_2(None) == "N/A"
    assert format_refresh_caption(45500) == "auto-refresh every 46s"
    assert format_market_cap(1.2e9) == "$1.20B"
    assert format_market_cap(2500) == "$2,500"


def _growth_spec(rows):
    return to_vega_spec(growth_bar_chart(pd.DataFrame(rows)))


def test_unique_labels_suffix_repeated_names():
    assert unique_labels(["Acme", "Globex", "Acme", "Acme"]) == ["Acme", "Globex", "Acme (2)", "Acme (3)"]


def test_growth_chart_keeps_a_bar_per_row_with_duplicate_names():
    spec = _growth_spec(
        [
            {"name": "Acme", "revenue_growth_pct": 10.0, "profit_growth_pct": 4.0},
            {"name": "Acme", "revenue_growth_pct": -2.0, "profit_growth_pct": 1.0},
        ]
    )
    assert spec["encoding"]["x"]["field"] == "label"
    (values,) = spec["datasets"].values()
    assert sorted({row["label"] for row in values}) == ["Acme", "Acme (2)"]
    assert spec["encoding"]["x"]["axis"]["labels"] is True


def test_growth_chart_hides_labels_past_ten_rows_even_with_one_name():
    rows = [{"name": "Acme", "revenue_growth_pct": float(i), "profit_growth_pct": 0.0} for i in range(11)]
    spec = _growth_spec(rows)
    assert spec["encoding"]["x"]["axis"]["labels"] is False
    assert spec["encoding"]["x"]["axis"]["ticks"] is False

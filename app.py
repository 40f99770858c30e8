import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import List

from sheet_metrics.aggregate import summarize, top_by_margin_expansion, chart_series
from sheet_metrics.charts import growth_bar_chart, sector_bar_chart
from sheet_metrics.formatting import (
    format_fetched_at,
    format_market_cap,
    format_pct_2,
    format_refresh_caption,
    format_sector_chips,
)
from sheet_metrics.normalize import records_frame
from sheet_metrics.refresh import SheetPoller
from sheet_metrics.settings import load_settings, normalize_settings


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 16px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .margin-item {border: 1px solid #e5e7eb;border-radius: 8px;padding: 8px;margin-bottom: 8px;}
        .margin-item .sub {color: #6b7280;font-size: 0.85rem;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container(border=True)
    with container:
        st.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
        yield container


def chips_html(labels: List[str]) -> str:
    return "<div class='chip-row'>" + "".join(f"<span class='chip'>{txt}</span>" for txt in labels) + "</div>"


def get_poller() -> SheetPoller:
    # One poller per browser session; sessions may point at different sheets.
    if "sheet_poller" not in st.session_state:
        st.session_state["sheet_poller"] = SheetPoller()
    return st.session_state["sheet_poller"]


# ---------- UI setup ----------
st.set_page_config(page_title="Company Metrics Dashboard", layout="wide")
inject_base_styles()

env_settings = load_settings()
with st.sidebar:
    st.markdown("### Google Sheet")
    sheet_id = st.text_input("Spreadsheet ID", env_settings.sheet_id)
    api_key = st.text_input("API key", env_settings.api_key, type="password")
    cell_range = st.text_input("Range", env_settings.cell_range)
    st.markdown("---")
    with st.expander("Advanced settings", expanded=False):
        poll_seconds = st.slider("Refresh interval (s)", min_value=5, max_value=600, value=max(5, min(600, int(env_settings.poll_interval_seconds))), step=5)
        top_n = st.slider("Top N margin expansion", min_value=1, max_value=20, value=min(20, env_settings.top_n))

settings = normalize_settings(
    {
        "sheet_id": sheet_id,
        "api_key": api_key,
        "cell_range": cell_range,
        "poll_interval_ms": poll_seconds * 1000,
        "top_n": top_n,
        "request_timeout_seconds": env_settings.request_timeout_seconds,
    }
)
poller = get_poller()
poller.configure(settings)

st.title("Company Metrics Dashboard")
st.caption(f"Connected to Google Sheet — {format_refresh_caption(settings.poll_interval_ms)}")

if not settings.ready:
    st.info("Enter a spreadsheet ID and an API key in the sidebar (or set SHEET_ID / GOOGLE_API_KEY) to start polling.")
    st.stop()


def render_kpi_tiles(entries):
    stats = summarize(entries)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Companies", stats.count)
    c2.metric("Avg. Revenue Growth (YoY)", format_pct_2(stats.avg_revenue_growth_pct))
    c3.metric("Avg. Profit Growth (YoY)", format_pct_2(stats.avg_profit_growth_pct))
    with c4:
        st.markdown("Sectors")
        st.markdown(chips_html(format_sector_chips(stats)), unsafe_allow_html=True)
    return stats


def render_margin_list(entries, n: int):
    top = top_by_margin_expansion(entries, n)
    if not top:
        st.info("No companies yet.")
        return
    for e in top:
        st.markdown(
            f"<div class='margin-item'><div><b>{e.name}</b></div>"
            f"<div class='sub'>Margin Expansion: {e.margin_expansion_pct:g}%</div></div>",
            unsafe_allow_html=True,
        )


def render_dashboard():
    snapshot = poller.snapshot
    status = poller.status()
    entries = list(snapshot.entries)

    top_bar = st.columns([6, 1, 1])
    top_bar[0].caption(f"Last updated: {format_fetched_at(status.fetched_at)}")
    if top_bar[1].button("Refresh"):
        poller.refresh()
        snapshot = poller.snapshot
        status = poller.status()
        entries = list(snapshot.entries)
    table_df = records_frame(snapshot.headers, snapshot.records)
    if not table_df.empty:
        top_bar[2].download_button(
            "Export CSV",
            data=table_df.to_csv(index=False).encode("utf-8"),
            file_name="companies.csv",
            mime="text/csv",
        )

    stats = render_kpi_tiles(entries)

    left, right = st.columns([2, 1])
    with left:
        with card("Revenue vs Profit Growth"):
            series = chart_series(entries)
            if series:
                st.altair_chart(growth_bar_chart(pd.DataFrame(series)), use_container_width=True)
            else:
                st.info("No rows returned by the sheet.")
    with right:
        with card(f"Margin Expansion (Top {settings.top_n})"):
            render_margin_list(entries, settings.top_n)

    if stats.sector_counts:
        with card("Companies by Sector"):
            sector_df = pd.DataFrame(list(stats.sector_counts.items()), columns=["sector", "count"])
            st.altair_chart(sector_bar_chart(sector_df), use_container_width=True)

    with card("Companies Table"):
        if status.refreshing:
            st.caption("Refreshing data…")
        if status.last_error:
            st.error(f"Error: {status.last_error}")
        if table_df.empty:
            st.info("No data yet.")
        else:
            display = table_df.copy()
            if entries and "Market cap" in display.columns:
                display["Market cap (parsed)"] = [format_market_cap(e.market_cap) for e in entries]
            st.dataframe(display, use_container_width=True, hide_index=True)

    st.caption("Tip: publish the sheet or grant viewer access and restrict the API key to your domain.")


st.fragment(run_every=settings.poll_interval_seconds)(render_dashboard)()

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import asdict
import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import GridModel, SettingsModel
from sheet_metrics.aggregate import chart_series, summarize, top_by_margin_expansion
from sheet_metrics.errors import EmptyGridError
from sheet_metrics.normalize import map_headers, normalize_grid, records_frame
from sheet_metrics.overview import compute_overview, compute_table
from sheet_metrics.refresh import SheetPoller
from sheet_metrics.settings import load_settings, normalize_settings


logger = logging.getLogger(__name__)

poller = SheetPoller()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = load_settings()
    poller.configure(settings)
    if not settings.ready:
        logger.warning("SHEET_ID / GOOGLE_API_KEY not set; polling disabled until PUT /settings")
    yield
    poller.stop()


app = FastAPI(title="Company Metrics Dashboard API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/settings")
def meta_settings():
    settings = poller.settings
    return _json({"settings": settings.public_dict(), "status": asdict(poller.status())})


@app.put("/settings")
def update_settings(payload: SettingsModel):
    try:
        settings = normalize_settings(payload.model_dump())
        restarted = poller.configure(settings)
        return _json({"settings": settings.public_dict(), "restarted": restarted, "running": poller.running})
    except Exception as exc:
        logger.exception("update_settings failed")
        return _error(exc)


@app.get("/overview")
def overview():
    try:
        return _json(compute_overview(poller.settings, poller.snapshot, poller.status()))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.get("/records")
def records():
    try:
        return _json(compute_table(poller.snapshot))
    except Exception as exc:
        logger.exception("records failed")
        return _error(exc)


@app.get("/chart-series")
def chart_series_view():
    try:
        return _json({"series": chart_series(poller.snapshot.entries)})
    except Exception as exc:
        logger.exception("chart_series failed")
        return _error(exc)


@app.get("/top-margin")
def top_margin(n: Optional[int] = Query(default=None, ge=0, le=200)):
    try:
        n = poller.settings.top_n if n is None else n
        top = top_by_margin_expansion(poller.snapshot.entries, n)
        return _json({"n": n, "entries": [asdict(e) for e in top]})
    except Exception as exc:
        logger.exception("top_margin failed")
        return _error(exc)


@app.post("/refresh")
def refresh():
    if not poller.settings.ready:
        return JSONResponse(status_code=409, content={"error": "sheet id and API key are required", "type": "NotConfigured"})
    try:
        poller.refresh()
        return _json({"status": asdict(poller.status()), "count": len(poller.snapshot.entries)})
    except Exception as exc:
        logger.exception("refresh failed")
        return _error(exc)


@app.post("/normalize")
def normalize(grid: GridModel, strict: bool = Query(default=False)):
    """Run the pipeline over a posted grid without touching the live snapshot."""
    try:
        if strict:
            map_headers(grid.values, strict=True)
        headers, recs, entries = normalize_grid(grid.values)
        stats = summarize(entries)
        return _json(
            {
                "headers": headers,
                "records": recs,
                "entries": [asdict(e) for e in entries],
                "summary": asdict(stats),
                "chart_series": chart_series(entries),
            }
        )
    except EmptyGridError as exc:
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("normalize failed")
        return _error(exc)


@app.get("/export/records")
def export_records():
    snapshot = poller.snapshot
    export_df = records_frame(snapshot.headers, snapshot.records)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": "attachment; filename=companies.csv"})

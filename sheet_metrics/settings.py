from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


DEFAULT_RANGE = "Sheet1!A1:I"
DEFAULT_POLL_INTERVAL_MS = 30000
DEFAULT_TOP_N = 5
DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class DashboardSettings:
    sheet_id: str = ""
    api_key: str = ""
    cell_range: str = DEFAULT_RANGE
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    top_n: int = DEFAULT_TOP_N
    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def ready(self) -> bool:
        return bool(self.sheet_id and self.api_key)

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0

    def public_dict(self) -> dict:
        """Settings safe to hand to a browser: the API key is never echoed."""
        return {
            "sheet_id": self.sheet_id,
            "has_api_key": bool(self.api_key),
            "cell_range": self.cell_range,
            "poll_interval_ms": self.poll_interval_ms,
            "top_n": self.top_n,
            "request_timeout_seconds": self.request_timeout_seconds,
        }


def _as_int(value: object, default: int, *, lo: int, hi: int) -> int:
    try:
        out = int(float(value))  # type: ignore[arg-type]
    except Exception:
        out = default
    return max(lo, min(hi, out))


def _as_float(value: object, default: float, *, lo: float, hi: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    if out != out:
        out = default
    return max(lo, min(hi, out))


def _as_str(value: Optional[object]) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_settings(raw: dict) -> DashboardSettings:
    cell_range = _as_str(raw.get("cell_range")) or DEFAULT_RANGE
    return DashboardSettings(
        sheet_id=_as_str(raw.get("sheet_id")),
        api_key=_as_str(raw.get("api_key")),
        cell_range=cell_range,
        poll_interval_ms=_as_int(raw.get("poll_interval_ms", DEFAULT_POLL_INTERVAL_MS), DEFAULT_POLL_INTERVAL_MS, lo=1000, hi=3_600_000),
        top_n=_as_int(raw.get("top_n", DEFAULT_TOP_N), DEFAULT_TOP_N, lo=1, hi=50),
        request_timeout_seconds=_as_float(
            raw.get("request_timeout_seconds", DEFAULT_TIMEOUT_SECONDS), DEFAULT_TIMEOUT_SECONDS, lo=1.0, hi=120.0
        ),
    )


def load_settings() -> DashboardSettings:
    load_dotenv()
    return normalize_settings(
        {
            "sheet_id": os.getenv("SHEET_ID", ""),
            "api_key": os.getenv("GOOGLE_API_KEY", ""),
            "cell_range": os.getenv("SHEET_RANGE", DEFAULT_RANGE),
            "poll_interval_ms": os.getenv("POLL_INTERVAL_MS", str(DEFAULT_POLL_INTERVAL_MS)),
            "top_n": os.getenv("TOP_MARGIN_N", str(DEFAULT_TOP_N)),
            "request_timeout_seconds": os.getenv("REQUEST_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)),
        }
    )

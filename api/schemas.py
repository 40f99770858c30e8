from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from sheet_metrics.settings import DEFAULT_POLL_INTERVAL_MS, DEFAULT_RANGE, DEFAULT_TIMEOUT_SECONDS, DEFAULT_TOP_N


class SettingsModel(BaseModel):
    sheet_id: str = ""
    api_key: str = ""
    cell_range: str = DEFAULT_RANGE
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    top_n: int = DEFAULT_TOP_N
    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


class GridModel(BaseModel):
    values: List[List[Optional[Union[str, int, float]]]] = Field(default_factory=list)

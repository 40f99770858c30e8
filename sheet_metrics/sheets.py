from __future__ import annotations

import logging
from typing import Any, List
from urllib.parse import quote

import requests

from sheet_metrics.errors import SheetFetchError
from sheet_metrics.normalize import Cell


SHEETS_VALUES_URL = "https://sheets.googleapis.com/v4/spreadsheets/{sheet_id}/values/{cell_range}"

logger = logging.getLogger(__name__)


def build_values_url(sheet_id: str, cell_range: str) -> str:
    return SHEETS_VALUES_URL.format(sheet_id=quote(sheet_id, safe=""), cell_range=quote(cell_range, safe=""))


def parse_values_payload(payload: Any) -> List[List[Cell]]:
    """Pull the raw grid out of a Sheets values response.

    The API omits ``values`` entirely when the range is empty.
    """
    if not isinstance(payload, dict):
        raise SheetFetchError(f"unexpected response body: {type(payload).__name__}")
    values = payload.get("values")
    if values is None:
        return []
    if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
        raise SheetFetchError("response 'values' is not a list of rows")
    return values


def fetch_values(sheet_id: str, cell_range: str, api_key: str, *, timeout: float = 15.0) -> List[List[Cell]]:
    url = build_values_url(sheet_id, cell_range)
    try:
        resp = requests.get(url, params={"key": api_key}, timeout=timeout)
    except requests.RequestException as exc:
        raise SheetFetchError(f"request failed: {exc}") from exc
    if not resp.ok:
        raise SheetFetchError(resp.text or resp.reason or f"HTTP {resp.status_code}", status_code=resp.status_code)
    try:
        payload = resp.json()
    except ValueError as exc:
        raise SheetFetchError("response is not JSON") from exc
    values = parse_values_payload(payload)
    logger.debug("fetched %d rows from %s", len(values), cell_range)
    return values

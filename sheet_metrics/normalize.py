from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, fields
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from sheet_metrics.errors import EmptyGridError


Cell = Union[str, int, float, None]
RawGrid = Sequence[Sequence[Cell]]
Record = Dict[str, Cell]

NAME_ALIASES = ("Company name", "Company Name", "Name", "company")
SECTOR_ALIASES = ("Which Sector this Company", "Sector")
SYMBOL_FIELD = "Symbol"
MARKET_CAP_FIELD = "Market cap"
REVENUE_GROWTH_FIELD = "Revenue growth Percentage (YoY)"
PROFIT_GROWTH_FIELD = "Profit Growth Percentage (YoY)"
MARGIN_EXPANSION_FIELD = "Margin Expansion"
REVENUE_STREAM_FIELD = "Main Revenue Stream"
DEBT_REDUCED_FIELD = "Debt Reduced Or Not"

EXPECTED_HEADERS = [
    NAME_ALIASES[0],
    SYMBOL_FIELD,
    MARKET_CAP_FIELD,
    REVENUE_GROWTH_FIELD,
    PROFIT_GROWTH_FIELD,
    MARGIN_EXPANSION_FIELD,
    SECTOR_ALIASES[0],
    REVENUE_STREAM_FIELD,
    DEBT_REDUCED_FIELD,
]

NAME_PLACEHOLDER = "—"
DEFAULT_SECTOR = "Other"
UNKNOWN = "Unknown"

YES_TOKENS = ("yes", "y", "true", "1", "reduced", "reduction")
NO_TOKENS = ("no", "n", "false", "0", "unchanged")

MAGNITUDE_SCALE = {"b": 1e9, "m": 1e6, "t": 1e12}

_MAGNITUDE_RE = re.compile(r"^([0-9.\-]+)\s*([bmt])?$", re.IGNORECASE)
_LEADING_FLOAT_RE = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class NormalizedEntry:
    name: str
    symbol: str
    market_cap: float
    revenue_growth_pct: float
    profit_growth_pct: float
    margin_expansion_pct: float
    sector: str
    revenue_stream: str
    debt_reduced: str


ENTRY_COLUMNS = [f.name for f in fields(NormalizedEntry)]


# ---------------- Cell helpers ----------------
def is_absent(value: Cell) -> bool:
    if value is None:
        return True
    if isinstance(value, float):
        return math.isnan(value)
    return False


def is_blank(value: Cell) -> bool:
    if is_absent(value):
        return True
    return isinstance(value, str) and not value.strip()


def cell_text(value: Cell) -> str:
    """Render a cell the way the sheet shows it (1500.0 -> "1500")."""
    if is_absent(value):
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_leading_float(text: str) -> Optional[float]:
    """Parse the longest numeric prefix of ``text``; None when there is none."""
    match = _LEADING_FLOAT_RE.match(text)
    if not match:
        return None
    try:
        value = float(match.group(0))
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


# ---------------- Header mapping ----------------
def map_headers(grid: Optional[RawGrid], *, strict: bool = False) -> List[str]:
    if not grid:
        if strict:
            raise EmptyGridError("grid has no header row")
        return []
    return [cell_text(h).strip() for h in (grid[0] or [])]


def to_records(grid: Optional[RawGrid]) -> List[Record]:
    headers = map_headers(grid)
    if not headers:
        return []
    records: List[Record] = []
    for row in grid[1:]:  # type: ignore[index]
        cells = list(row or [])
        record: Record = {}
        # Duplicate headers: later columns overwrite earlier ones.
        for idx, header in enumerate(headers):
            value = cells[idx] if idx < len(cells) else ""
            record[header] = "" if is_absent(value) else value
        records.append(record)
    return records


def resolve_field(record: Record, aliases: Iterable[str]) -> str:
    for alias in aliases:
        value = record.get(alias)
        if not is_absent(value) and value != "":
            return cell_text(value)
    return ""


# ---------------- Coercions ----------------
def coerce_magnitude(raw: Cell) -> float:
    if is_absent(raw):
        return 0.0
    s = re.sub(r"[$,]", "", cell_text(raw)).strip()
    if not s:
        return 0.0
    match = _MAGNITUDE_RE.match(s)
    if match:
        value = parse_leading_float(match.group(1))
        if value is None:
            return 0.0
        suffix = (match.group(2) or "").lower()
        return value * MAGNITUDE_SCALE.get(suffix, 1.0)
    value = parse_leading_float(s)
    return value if value is not None else 0.0


def coerce_percent(raw: Cell) -> float:
    if is_absent(raw):
        return 0.0
    s = cell_text(raw).strip()
    if s.endswith("%"):
        s = s[:-1].strip()
    if not s:
        return 0.0
    value = parse_leading_float(s)
    return value if value is not None else 0.0


def _matches_any(text: str, tokens: Sequence[str]) -> bool:
    # Single-character tokens only count as a whole-value match.
    return any((token in text) if len(token) > 1 else text == token for token in tokens)


def normalize_yes_no(raw: Cell) -> str:
    if is_blank(raw):
        return UNKNOWN
    s = cell_text(raw).strip().lower()
    if _matches_any(s, YES_TOKENS):
        return "Yes"
    if _matches_any(s, NO_TOKENS):
        return "No"
    return s[:1].upper() + s[1:]


# ---------------- Entries ----------------
def normalize_entry(record: Record) -> NormalizedEntry:
    return NormalizedEntry(
        name=resolve_field(record, NAME_ALIASES) or NAME_PLACEHOLDER,
        symbol=resolve_field(record, [SYMBOL_FIELD]),
        market_cap=coerce_magnitude(record.get(MARKET_CAP_FIELD)),
        revenue_growth_pct=coerce_percent(record.get(REVENUE_GROWTH_FIELD)),
        profit_growth_pct=coerce_percent(record.get(PROFIT_GROWTH_FIELD)),
        margin_expansion_pct=coerce_percent(record.get(MARGIN_EXPANSION_FIELD)),
        sector=resolve_field(record, SECTOR_ALIASES) or DEFAULT_SECTOR,
        revenue_stream=resolve_field(record, [REVENUE_STREAM_FIELD]),
        debt_reduced=normalize_yes_no(record.get(DEBT_REDUCED_FIELD)),
    )


def normalize_entries(records: Iterable[Record]) -> List[NormalizedEntry]:
    return [normalize_entry(r) for r in records]


def normalize_grid(grid: Optional[RawGrid]) -> Tuple[List[str], List[Record], List[NormalizedEntry]]:
    """One pass over the grid yielding the table view and the typed view."""
    headers = map_headers(grid)
    records = to_records(grid)
    return headers, records, normalize_entries(records)


# ---------------- DataFrame views ----------------
def entries_frame(entries: Sequence[NormalizedEntry]) -> pd.DataFrame:
    return pd.DataFrame([asdict(e) for e in entries], columns=ENTRY_COLUMNS)


def records_frame(headers: Sequence[str], records: Sequence[Record]) -> pd.DataFrame:
    columns = list(dict.fromkeys(headers))
    rows = [{c: cell_text(r.get(c)) for c in columns} for r in records]
    return pd.DataFrame(rows, columns=columns)

"""Core (UI-agnostic) company metrics logic.

This package contains:
- sheet fetching (Sheets values API -> raw grid)
- record normalization (raw grid -> records + typed entries)
- aggregation (summary stats, top-N, chart series)
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""

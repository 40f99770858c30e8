from __future__ import annotations


class DashboardError(Exception):
    """Base class for errors raised by the dashboard core."""


class EmptyGridError(DashboardError):
    """The sheet returned no rows, so there is no header to map."""


class SheetFetchError(DashboardError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

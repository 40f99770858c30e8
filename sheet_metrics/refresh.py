from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import pandas as pd

from sheet_metrics.normalize import Cell, NormalizedEntry, RawGrid, Record, normalize_grid
from sheet_metrics.settings import DashboardSettings
from sheet_metrics.sheets import fetch_values


logger = logging.getLogger(__name__)

Fetcher = Callable[[DashboardSettings], List[List[Cell]]]


@dataclass(frozen=True)
class Snapshot:
    headers: Tuple[str, ...] = ()
    records: Tuple[Record, ...] = ()
    entries: Tuple[NormalizedEntry, ...] = ()
    fetched_at: Optional[pd.Timestamp] = None


@dataclass(frozen=True)
class RefreshStatus:
    fetched_at: Optional[pd.Timestamp] = None
    last_error: Optional[str] = None
    refreshing: bool = False
    running: bool = False


def fetch_for_settings(settings: DashboardSettings) -> List[List[Cell]]:
    return fetch_values(
        settings.sheet_id,
        settings.cell_range,
        settings.api_key,
        timeout=settings.request_timeout_seconds,
    )


def build_snapshot(grid: Optional[RawGrid], *, fetched_at: Optional[pd.Timestamp] = None) -> Snapshot:
    headers, records, entries = normalize_grid(grid)
    return Snapshot(
        headers=tuple(headers),
        records=tuple(records),
        entries=tuple(entries),
        fetched_at=fetched_at if fetched_at is not None else pd.Timestamp.now(tz="UTC"),
    )


def _poll_key(settings: DashboardSettings) -> Tuple[str, str, str, int]:
    return (settings.sheet_id, settings.api_key, settings.cell_range, settings.poll_interval_ms)


class SheetPoller:
    """Keeps the latest normalized snapshot of a sheet, refreshed on a timer.

    The timer only runs while both a sheet id and an API key are configured.
    Changing either of them (or the range or interval) replaces the timer;
    fetches started by a replaced timer are discarded when they complete.
    A failed refresh keeps the previous snapshot.
    """

    def __init__(self, fetcher: Fetcher = fetch_for_settings, settings: Optional[DashboardSettings] = None) -> None:
        self._fetcher = fetcher
        self._settings = settings or DashboardSettings()
        self._lock = threading.Lock()
        # Serializes start/stop/configure so only one timer thread exists.
        self._control_lock = threading.RLock()
        self._snapshot = Snapshot()
        self._last_error: Optional[str] = None
        self._in_flight = 0
        self._generation = 0
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def settings(self) -> DashboardSettings:
        return self._settings

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def status(self) -> RefreshStatus:
        with self._lock:
            return RefreshStatus(
                fetched_at=self._snapshot.fetched_at,
                last_error=self._last_error,
                refreshing=self._in_flight > 0,
                running=self.running,
            )

    def configure(self, settings: DashboardSettings) -> bool:
        """Apply new settings; returns True when the timer was stopped or replaced."""
        with self._control_lock:
            with self._lock:
                previous = self._settings
                self._settings = settings
            if _poll_key(previous) == _poll_key(settings) and (self.running or not settings.ready):
                return False
            was_running = self.running
            self.stop()
            if settings.ready:
                self.start()
            return was_running or settings.ready

    def start(self) -> None:
        with self._control_lock:
            if self.running:
                return
            with self._lock:
                self._generation += 1
                generation = self._generation
                stop_event = threading.Event()
                self._stop_event = stop_event
            interval = self._settings.poll_interval_seconds
            self._thread = threading.Thread(
                target=self._run,
                args=(stop_event, generation, interval),
                name="sheet-poller",
                daemon=True,
            )
            self._thread.start()
        logger.info("sheet poller started (every %.0fs)", interval)

    def stop(self) -> None:
        with self._control_lock:
            with self._lock:
                self._generation += 1
                stop_event, self._stop_event = self._stop_event, None
            self._thread = None
        if stop_event is not None:
            stop_event.set()
            logger.info("sheet poller stopped")

    def _run(self, stop_event: threading.Event, generation: int, interval: float) -> None:
        self.refresh(generation=generation)
        while not stop_event.wait(interval):
            self.refresh(generation=generation)

    def refresh(self, *, generation: Optional[int] = None) -> Snapshot:
        settings = self._settings
        if not settings.ready:
            logger.warning("refresh skipped: sheet id or API key missing")
            return self._snapshot
        with self._lock:
            self._in_flight += 1
            if generation is None:
                generation = self._generation
        try:
            grid = self._fetcher(settings)
            snapshot = build_snapshot(grid)
        except Exception as exc:
            logger.exception("sheet refresh failed")
            with self._lock:
                if generation == self._generation:
                    self._last_error = str(exc)
            return self._snapshot
        finally:
            with self._lock:
                self._in_flight -= 1

        with self._lock:
            if generation != self._generation:
                return self._snapshot
            self._snapshot = snapshot
            self._last_error = None
        logger.debug("refreshed %d records", len(snapshot.records))
        return snapshot

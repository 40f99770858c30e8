from pathlib import Path

from streamlit.testing.v1 import AppTest

from sheet_metrics.refresh import SheetPoller

APP_PATH = Path(__file__).resolve().parents[1] / "app.py"


def _run_session():
    at = AppTest.from_file(str(APP_PATH), default_timeout=30)
    at.run()
    return at


def test_each_session_gets_its_own_poller(monkeypatch):
    monkeypatch.setenv("SHEET_ID", "")
    monkeypatch.setenv("GOOGLE_API_KEY", "")

    first = _run_session()
    second = _run_session()

    assert not first.exception
    assert not second.exception
    assert isinstance(first.session_state["sheet_poller"], SheetPoller)
    assert first.session_state["sheet_poller"] is not second.session_state["sheet_poller"]


def test_rerun_keeps_the_session_poller(monkeypatch):
    monkeypatch.setenv("SHEET_ID", "")
    monkeypatch.setenv("GOOGLE_API_KEY", "")

    at = _run_session()
    poller = at.session_state["sheet_poller"]
    at.run()

    assert at.session_state["sheet_poller"] is poller
    assert not poller.running

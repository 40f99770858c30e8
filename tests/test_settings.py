from sheet_metrics.settings import DEFAULT_RANGE, DashboardSettings, load_settings, normalize_settings


def test_normalize_settings_defaults():
    settings = normalize_settings({})
    assert settings == DashboardSettings()
    assert settings.cell_range == DEFAULT_RANGE
    assert settings.poll_interval_ms == 30000
    assert settings.top_n == 5
    assert not settings.ready


def test_normalize_settings_clamps_and_recovers_bad_values():
    settings = normalize_settings(
        {
            "sheet_id": "  abc ",
            "api_key": "key",
            "cell_range": "  ",
            "poll_interval_ms": "10",
            "top_n": "lots",
            "request_timeout_seconds": "999",
        }
    )
    assert settings.sheet_id == "abc"
    assert settings.ready
    assert settings.cell_range == DEFAULT_RANGE
    assert settings.poll_interval_ms == 1000
    assert settings.top_n == 5
    assert settings.request_timeout_seconds == 120.0


def test_public_dict_hides_api_key():
    public = normalize_settings({"sheet_id": "s", "api_key": "secret"}).public_dict()
    assert "api_key" not in public
    assert public["has_api_key"] is True
    assert "secret" not in str(public)


def test_load_settings_reads_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SHEET_ID", "sheet-1")
    monkeypatch.setenv("GOOGLE_API_KEY", "key-1")
    monkeypatch.setenv("SHEET_RANGE", "Data!A1:Z")
    monkeypatch.setenv("POLL_INTERVAL_MS", "60000")
    monkeypatch.setenv("TOP_MARGIN_N", "3")
    settings = load_settings()
    assert settings.sheet_id == "sheet-1"
    assert settings.api_key == "key-1"
    assert settings.cell_range == "Data!A1:Z"
    assert settings.poll_interval_seconds == 60.0
    assert settings.top_n == 3

from pathlib import Path

import pytest
from fastapi import FastAPI

from salarymap.core.config import Settings, get_settings
from salarymap.main import create_app
from salarymap.services import DatasetStore


def test_create_app_registers_routers() -> None:
    app = create_app(store=DatasetStore(None), autoload=False)
    assert isinstance(app, FastAPI)
    paths = {getattr(route, "path", None) for route in app.routes}
    assert {"/dashboard/", "/dashboard/map.svg", "/api/choropleth", "/api/summary", "/api/filters"} <= paths


def test_get_settings_uses_default_configuration(monkeypatch) -> None:
    for name in (
        "DATA_DIR",
        "MAP_WIDTH",
        "MAP_HEIGHT",
        "BASE_SCALE_FACTOR",
        "ZOOM_SCALE_FACTOR",
        "QUANTILE_LOW",
        "QUANTILE_HIGH",
        "MAX_BASE_SALARY",
        "ZOOM_FALLBACK",
        "HISTOGRAM_BINS",
        "LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.sources.data_dir == Path("data")
    assert settings.sources.path("salaries") == Path("data") / "h1bs-2012-2018.csv"
    assert (settings.map.width, settings.map.height) == (500, 500)
    assert settings.map.base_scale_factor == 1.3
    assert settings.map.zoom_scale_factor == 4.5
    assert (settings.map.quantile_low, settings.map.quantile_high) == (0.15, 0.85)
    assert settings.map.zoom_fallback == "fallback"
    assert settings.max_base_salary == 300_000
    assert settings.log_dir is None
    get_settings.cache_clear()


@pytest.mark.parametrize(
    ("name", "value"),
    [("MAP_WIDTH", "-1"), ("QUANTILE_LOW", "0.9"), ("ZOOM_FALLBACK", "ignore"), ("MAX_BASE_SALARY", "lots")],
)
def test_settings_reject_invalid_values(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        Settings.from_env()

"""Configuration for the salary map application."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ZOOM_FALLBACK_POLICIES = ("fallback", "error")


@dataclass(slots=True)
class DataSources:
    """Locations of the raw datasets consumed by the loader."""

    data_dir: Path
    topology: str = "us.json"
    counties: str = "us-county-names-normalized.csv"
    incomes: str = "county-median-incomes.csv"
    salaries: str = "h1bs-2012-2018.csv"
    state_names: str = "us-state-names.tsv"

    def path(self, name: str) -> Path:
        return self.data_dir / getattr(self, name)


@dataclass(slots=True)
class MapSettings:
    """Drawing-area and projection tuning for the choropleth."""

    width: int = 500
    height: int = 500
    base_scale_factor: float = 1.3
    zoom_scale_factor: float = 4.5
    quantile_low: float = 0.15
    quantile_high: float = 0.85
    zoom_fallback: str = "fallback"


@dataclass(slots=True)
class Settings:
    """Top-level application configuration container."""

    sources: DataSources
    map: MapSettings
    max_base_salary: float = 300_000
    histogram_bins: int = 10
    log_level: str = "INFO"
    log_dir: Path | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Load configuration values from environment variables."""

        def _get_env(name: str, default: str) -> str:
            return os.getenv(name, default)

        def _positive(name: str, default: str, cast=float):
            raw = _get_env(name, default)
            try:
                value = cast(raw)
            except ValueError as exc:
                raise ValueError(f"{name} must be numeric, got {raw!r}.") from exc
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {raw!r}.")
            return value

        quantile_low = float(_get_env("QUANTILE_LOW", "0.15"))
        quantile_high = float(_get_env("QUANTILE_HIGH", "0.85"))
        if not 0 <= quantile_low <= quantile_high <= 1:
            raise ValueError(
                "Quantile bounds must satisfy 0 <= QUANTILE_LOW <= QUANTILE_HIGH <= 1."
            )

        zoom_fallback = _get_env("ZOOM_FALLBACK", "fallback").strip().lower()
        if zoom_fallback not in ZOOM_FALLBACK_POLICIES:
            raise ValueError(
                f"ZOOM_FALLBACK must be one of {', '.join(ZOOM_FALLBACK_POLICIES)}."
            )

        log_dir = _get_env("LOG_DIR", "").strip()

        map_settings = MapSettings(
            width=_positive("MAP_WIDTH", "500", int),
            height=_positive("MAP_HEIGHT", "500", int),
            base_scale_factor=_positive("BASE_SCALE_FACTOR", "1.3"),
            zoom_scale_factor=_positive("ZOOM_SCALE_FACTOR", "4.5"),
            quantile_low=quantile_low,
            quantile_high=quantile_high,
            zoom_fallback=zoom_fallback,
        )
        return cls(
            sources=DataSources(data_dir=Path(_get_env("DATA_DIR", "data"))),
            map=map_settings,
            max_base_salary=_positive("MAX_BASE_SALARY", "300000"),
            histogram_bins=_positive("HISTOGRAM_BINS", "10", int),
            log_level=_get_env("LOG_LEVEL", "INFO"),
            log_dir=Path(log_dir) if log_dir else None,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""

    settings = Settings.from_env()

    # Import locally to avoid circular dependencies during module import time.
    from .logger import get_logger

    logger = get_logger(__name__)
    logger.debug(
        "Settings initialised",
        extra={
            "data_dir": str(settings.sources.data_dir),
            "map": {
                "width": settings.map.width,
                "height": settings.map.height,
                "base_scale_factor": settings.map.base_scale_factor,
                "zoom_scale_factor": settings.map.zoom_scale_factor,
                "quantiles": (settings.map.quantile_low, settings.map.quantile_high),
                "zoom_fallback": settings.map.zoom_fallback,
            },
            "max_base_salary": settings.max_base_salary,
        },
    )
    return settings

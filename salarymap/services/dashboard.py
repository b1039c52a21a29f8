"""Service assembling everything one dashboard view needs."""
from __future__ import annotations

from dataclasses import dataclass
from statistics import fmean
from typing import Sequence

import numpy as np

from salarymap.core.config import MapSettings, Settings
from salarymap.core.logger import get_logger, log_context
from salarymap.domain import CountyValue, SalaryRecord
from salarymap.geo.projection import build_projection
from salarymap.services.aggregator import county_values, median_salary
from salarymap.services.choropleth import Choropleth, render
from salarymap.services.filters import FilteredBy, apply_filter
from salarymap.services.join_engine import DataSets
from salarymap.services.quantize import build_quantize_scale

LOGGER = get_logger(__name__)

US_TOTAL_KEY = "US"


@dataclass(frozen=True, slots=True)
class HistogramBin:
    """Salary count in ``[lower, upper)``; the last bin also includes ``upper``."""

    lower: float
    upper: float
    count: int


@dataclass(frozen=True, slots=True)
class DashboardView:
    """Everything rendered for one filter selection."""

    filtered_by: FilteredBy
    salaries: tuple[SalaryRecord, ...]
    total_salaries: int
    values: tuple[CountyValue, ...]
    choropleth: Choropleth
    median_household: float | None
    median_salary: float | None
    mean_salary: float | None
    histogram: tuple[HistogramBin, ...]


def household_income_baseline(datasets: DataSets, zoom: str | None) -> float | None:
    """Reference household income for the histogram's median line.

    Nationally this is the ``US`` summary row; with a state selected it is
    the mean of that state's county incomes.
    """

    if zoom:
        incomes = datasets.incomes_by_us_state.get(zoom, ())
        return fmean(income.median_income for income in incomes) if incomes else None
    national = datasets.incomes_by_us_state.get(US_TOTAL_KEY, ())
    return national[0].median_income if national else None


def salary_histogram(salaries: Sequence[SalaryRecord], bins: int) -> tuple[HistogramBin, ...]:
    if not salaries:
        return ()
    counts, edges = np.histogram([record.base_salary for record in salaries], bins=bins)
    return tuple(
        HistogramBin(lower=float(edges[i]), upper=float(edges[i + 1]), count=int(counts[i]))
        for i in range(len(counts))
    )


class DashboardService:
    """Recompute the county values and the map for a filter selection."""

    def __init__(self, map_settings: MapSettings | None = None, histogram_bins: int = 10) -> None:
        self.map_settings = map_settings or MapSettings()
        self.histogram_bins = histogram_bins

    @classmethod
    def from_settings(cls, settings: Settings) -> "DashboardService":
        return cls(settings.map, settings.histogram_bins)

    def choropleth(
        self,
        datasets: DataSets,
        values: Sequence[CountyValue],
        zoom: str | None,
        *,
        x: float = 0,
        y: float = 0,
    ) -> Choropleth:
        cfg = self.map_settings
        geo_path = build_projection(
            cfg.width,
            cfg.height,
            zoom,
            datasets.topology,
            datasets.us_state_names,
            base_scale_factor=cfg.base_scale_factor,
            zoom_scale_factor=cfg.zoom_scale_factor,
            fallback=cfg.zoom_fallback == "fallback",
        )
        quantize = build_quantize_scale(
            values,
            low_quantile=cfg.quantile_low,
            high_quantile=cfg.quantile_high,
        )
        return render(
            datasets.topology,
            geo_path,
            quantize,
            values,
            x=x,
            y=y,
            width=cfg.width,
            height=cfg.height,
            zoom=zoom,
        )

    def build(self, datasets: DataSets, filtered_by: FilteredBy) -> DashboardView:
        zoom = filtered_by.zoom
        with log_context.scoped(year=filtered_by.year, state=filtered_by.us_state, title=filtered_by.job_title):
            salaries = tuple(apply_filter(datasets.tech_salaries, filtered_by))
            values = tuple(county_values(datasets.counties, salaries, datasets.median_incomes))
            choropleth = self.choropleth(datasets, values, zoom)
            LOGGER.info(
                "Dashboard built: %s salaries, %s of %s counties with data",
                len(salaries),
                len(values),
                len(datasets.counties),
            )

        return DashboardView(
            filtered_by=filtered_by,
            salaries=salaries,
            total_salaries=len(datasets.tech_salaries),
            values=values,
            choropleth=choropleth,
            median_household=household_income_baseline(datasets, zoom),
            median_salary=median_salary(salaries),
            mean_salary=fmean(record.base_salary for record in salaries) if salaries else None,
            histogram=salary_histogram(salaries, self.histogram_bins),
        )


__all__ = [
    "DashboardService",
    "DashboardView",
    "HistogramBin",
    "household_income_baseline",
    "salary_histogram",
]

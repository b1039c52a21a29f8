"""Response schemas for the dashboard JSON endpoints."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from salarymap.services.choropleth import Choropleth
from salarymap.services.dashboard import DashboardView
from salarymap.services.filters import FilterOptions, FilteredBy


class FilterSelection(BaseModel):
    """Active filter; ``*`` marks an unconstrained field."""

    year: str
    us_state: str
    job_title: str
    token: str

    @classmethod
    def from_filter(cls, filtered_by: FilteredBy, token: str) -> "FilterSelection":
        return cls(
            year=filtered_by.year,
            us_state=filtered_by.us_state,
            job_title=filtered_by.job_title,
            token=token,
        )


class CountyShapeSchema(BaseModel):
    county_id: Any
    path: str
    fill: str
    value: float | None = None
    bucket: int | None = None


class ChoroplethResponse(BaseModel):
    """Serialized choropleth: county fills plus the state-border overlay."""

    filter: FilterSelection
    x: float
    y: float
    width: float
    height: float
    zoom: str | None
    domain: tuple[float, float]
    counties: list[CountyShapeSchema]
    borders: str
    border_stroke: str

    @classmethod
    def from_choropleth(cls, choropleth: Choropleth, selection: FilterSelection) -> "ChoroplethResponse":
        return cls(
            filter=selection,
            x=choropleth.x,
            y=choropleth.y,
            width=choropleth.width,
            height=choropleth.height,
            zoom=choropleth.zoom,
            domain=choropleth.domain,
            counties=[
                CountyShapeSchema(
                    county_id=shape.county_id,
                    path=shape.path,
                    fill=shape.fill,
                    value=shape.value,
                    bucket=shape.bucket,
                )
                for shape in choropleth.counties
            ],
            borders=choropleth.borders.path,
            border_stroke=choropleth.borders.stroke,
        )


class HistogramBinSchema(BaseModel):
    lower: float
    upper: float
    count: int


class CountyValueSchema(BaseModel):
    county_id: int
    value: float


class DashboardSummary(BaseModel):
    """Statistics for a filter selection, without the map geometry."""

    filter: FilterSelection
    salary_count: int
    total_salaries: int
    median_salary: float | None
    mean_salary: float | None
    median_household: float | None
    counties_with_data: int
    domain: tuple[float, float]
    histogram: list[HistogramBinSchema]
    county_values: list[CountyValueSchema]

    @classmethod
    def from_view(cls, view: DashboardView, selection: FilterSelection) -> "DashboardSummary":
        return cls(
            filter=selection,
            salary_count=len(view.salaries),
            total_salaries=view.total_salaries,
            median_salary=view.median_salary,
            mean_salary=view.mean_salary,
            median_household=view.median_household,
            counties_with_data=len(view.values),
            domain=view.choropleth.domain,
            histogram=[
                HistogramBinSchema(lower=b.lower, upper=b.upper, count=b.count)
                for b in view.histogram
            ],
            county_values=[
                CountyValueSchema(county_id=v.county_id, value=v.value) for v in view.values
            ],
        )


class FilterOptionsResponse(BaseModel):
    years: list[int]
    job_titles: list[str]
    us_states: list[str]

    @classmethod
    def from_options(cls, options: FilterOptions) -> "FilterOptionsResponse":
        return cls(
            years=list(options.years),
            job_titles=list(options.job_titles),
            us_states=list(options.us_states),
        )


class LoadStatus(BaseModel):
    state: str
    detail: str | None = None

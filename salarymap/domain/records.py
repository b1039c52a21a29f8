"""Typed records for the salary, county and income datasets."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class SalaryRecord:
    """One certified H-1B application with its base salary."""

    employer: str
    submit_date: date | None
    start_date: date | None
    case_status: str
    job_title: str
    clean_job_title: str
    base_salary: float
    city: str
    us_state: str
    county: str
    county_id: int | None


@dataclass(frozen=True, slots=True)
class CountyIncome:
    """Median household income for a county with its 90% confidence bounds.

    ``county_id`` stays ``None`` until the join engine resolves the county
    name against the reference table.
    """

    county_name: str
    us_state: str
    median_income: float
    lower_bound: float
    upper_bound: float
    county_id: int | None = None


@dataclass(frozen=True, slots=True)
class County:
    """Entry of the authoritative county reference table."""

    id: int
    name: str


@dataclass(frozen=True, slots=True)
class USStateName:
    """Bridge between a postal code and the state's geometry feature id."""

    code: str
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class CountyValue:
    """Median tech salary minus median household income for one county."""

    county_id: int
    value: float

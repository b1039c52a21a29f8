"""Per-county salary-versus-income deltas that drive the map coloring."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Mapping, Sequence

import numpy as np

from salarymap.core.logger import get_logger, timeit
from salarymap.domain import County, CountyIncome, CountyValue, SalaryRecord

LOGGER = get_logger(__name__)


def median_salary(salaries: Sequence[SalaryRecord]) -> float | None:
    """Median base salary; even-length lists average the two middle values."""

    if not salaries:
        return None
    return float(np.median([record.base_salary for record in salaries]))


def group_salaries_by_county_name(
    salaries: Iterable[SalaryRecord],
) -> dict[str, list[SalaryRecord]]:
    groups: dict[str, list[SalaryRecord]] = defaultdict(list)
    for record in salaries:
        groups[record.county].append(record)
    return dict(groups)


def county_value(
    county: County,
    salaries_by_county_name: Mapping[str, Sequence[SalaryRecord]],
    median_incomes: Mapping[int, CountyIncome],
) -> CountyValue | None:
    """Median tech salary minus median household income for ``county``.

    Income is looked up by county id, salaries by county name. ``None`` when
    either side is missing; a county without data is never reported as zero.
    """

    income = median_incomes.get(county.id)
    salaries = salaries_by_county_name.get(county.name)
    if income is None or not salaries:
        return None
    return CountyValue(
        county_id=county.id,
        value=median_salary(salaries) - income.median_income,
    )


def county_values(
    counties: Sequence[County],
    salaries: Iterable[SalaryRecord],
    median_incomes: Mapping[int, CountyIncome],
) -> list[CountyValue]:
    """Evaluate ``county_value`` for every reference county that has data."""

    with timeit("county aggregation", logger=LOGGER, level=logging.DEBUG, unit="counties") as timer:
        by_name = group_salaries_by_county_name(salaries)
        values: list[CountyValue] = []
        for county in counties:
            value = county_value(county, by_name, median_incomes)
            if value is None:
                timer.skip()
                continue
            values.append(value)
            timer.add()
    return values


__all__ = [
    "county_value",
    "county_values",
    "group_salaries_by_county_name",
    "median_salary",
]

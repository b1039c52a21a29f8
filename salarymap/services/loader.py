"""Read the raw datasets and parse their rows into typed records.

Every row passes through a ``parse_*`` function that renames the columns,
casts numbers and dates, and returns ``None`` for rows it cannot use. The
``None`` sentinels are kept in the parsed lists so that the join engine can
count what it drops.
"""
from __future__ import annotations

import asyncio
import csv
import json
import math
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Mapping, TypeVar

from salarymap.core.config import DataSources
from salarymap.core.logger import get_logger, timeit
from salarymap.domain import (
    County,
    CountyIncome,
    DatasetLoadError,
    SalaryRecord,
    USStateName,
)

LOGGER = get_logger(__name__)

DATE_FORMAT = "%m/%d/%Y"
DEFAULT_MAX_BASE_SALARY = 300_000

T = TypeVar("T")
Row = Mapping[str, str]


def _to_float(value: str | None) -> float | None:
    if value is None:
        return None
    value = value.strip().replace(",", "")
    if not value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _to_int(value: str | None) -> int | None:
    number = _to_float(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _parse_date(value: str | None) -> date | None:
    if not value or not value.strip():
        return None
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def parse_income(row: Row) -> CountyIncome | None:
    median = _to_float(row.get("Median Household Income"))
    if median is None:
        return None
    return CountyIncome(
        county_name=row.get("Name", ""),
        us_state=row.get("State", ""),
        median_income=median,
        lower_bound=_to_float(row.get("90% CI Lower Bound")) or 0.0,
        upper_bound=_to_float(row.get("90% CI Upper Bound")) or 0.0,
    )


def parse_salary(row: Row, max_base_salary: float = DEFAULT_MAX_BASE_SALARY) -> SalaryRecord | None:
    """Parse one H-1B row; ``None`` when the salary or a date is unusable.

    Salaries must satisfy ``0 < base_salary <= max_base_salary``. The submit
    date is required because the year filter reads it; a blank start date is
    allowed but a malformed one rejects the row.
    """
    base_salary = _to_float(row.get("base salary"))
    if base_salary is None or base_salary <= 0 or base_salary > max_base_salary:
        return None
    try:
        submit_date = _parse_date(row.get("submit date"))
        start_date = _parse_date(row.get("start date"))
    except ValueError:
        return None
    if submit_date is None:
        return None
    job_title = row.get("job title", "")
    return SalaryRecord(
        employer=row.get("employer", ""),
        submit_date=submit_date,
        start_date=start_date,
        case_status=row.get("case status", ""),
        job_title=job_title,
        clean_job_title=job_title,
        base_salary=base_salary,
        city=row.get("city", ""),
        us_state=row.get("state", ""),
        county=row.get("county", ""),
        county_id=_to_int(row.get("countyID")),
    )


def parse_county(row: Row) -> County | None:
    county_id = _to_int(row.get("id"))
    if county_id is None:
        return None
    return County(id=county_id, name=row.get("name", ""))


def parse_state_name(row: Row) -> USStateName | None:
    state_id = _to_int(row.get("id"))
    if state_id is None:
        return None
    return USStateName(code=row.get("code", ""), id=state_id, name=row.get("name", ""))


def read_rows(path: Path, parser: Callable[[Row], T | None], *, delimiter: str = ",") -> list[T | None]:
    """Parse every row of a delimited file, keeping ``None`` for rejected rows."""

    with path.open(newline="", encoding="utf-8") as handle:
        return [parser(row) for row in csv.DictReader(handle, delimiter=delimiter)]


def read_topology(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as handle:
        topology = json.load(handle)
    if topology.get("type") != "Topology":
        raise ValueError(f"{path.name} is not a TopoJSON topology")
    return topology


@dataclass(frozen=True, slots=True)
class RawDatasets:
    """Parsed but not yet reconciled datasets."""

    topology: dict[str, Any]
    counties: list[County | None]
    incomes: list[CountyIncome | None]
    salaries: list[SalaryRecord | None]
    state_names: list[USStateName | None]


async def _read(source: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except (OSError, ValueError, KeyError, csv.Error) as exc:
        raise DatasetLoadError(source, exc) from exc


async def load_raw_datasets(
    sources: DataSources,
    *,
    max_base_salary: float = DEFAULT_MAX_BASE_SALARY,
) -> RawDatasets:
    """Read all five sources concurrently.

    The result is only returned once every read succeeded; the first failure
    is raised as ``DatasetLoadError`` and nothing partial is handed on.
    """

    def _salary_parser(row: Row) -> SalaryRecord | None:
        return parse_salary(row, max_base_salary)

    with timeit("dataset read", logger=LOGGER, unit="sources", total=5):
        topology, counties, incomes, salaries, state_names = await asyncio.gather(
            _read("topology", read_topology, sources.path("topology")),
            _read("counties", read_rows, sources.path("counties"), parse_county),
            _read("incomes", read_rows, sources.path("incomes"), parse_income),
            _read("salaries", read_rows, sources.path("salaries"), _salary_parser),
            _read(
                "state_names",
                read_rows,
                sources.path("state_names"),
                parse_state_name,
                delimiter="\t",
            ),
        )
    LOGGER.info(
        "Read %s counties, %s incomes, %s salary rows, %s states",
        len(counties),
        len(incomes),
        len(salaries),
        len(state_names),
    )
    return RawDatasets(
        topology=topology,
        counties=counties,
        incomes=incomes,
        salaries=salaries,
        state_names=state_names,
    )


__all__ = [
    "RawDatasets",
    "load_raw_datasets",
    "parse_county",
    "parse_income",
    "parse_salary",
    "parse_state_name",
    "read_rows",
    "read_topology",
]

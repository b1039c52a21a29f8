"""Reconcile the salary, county and income datasets into one data model."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from salarymap.core.config import DataSources
from salarymap.core.logger import get_logger, timeit
from salarymap.domain import County, CountyIncome, SalaryRecord, USStateName
from salarymap.services.loader import DEFAULT_MAX_BASE_SALARY, RawDatasets, load_raw_datasets

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class JoinReport:
    """Counts of rows the reconciliation left out, for observability."""

    salaries_read: int = 0
    salaries_dropped: int = 0
    incomes_read: int = 0
    incomes_unparsed: int = 0
    incomes_unmatched: int = 0
    income_duplicates: int = 0
    ambiguous_county_names: int = 0


@dataclass(frozen=True, slots=True)
class IncomeIndex:
    """Income records indexed by resolved county id, county name and state."""

    by_county_id: Mapping[int, CountyIncome]
    by_county_name: Mapping[str, tuple[CountyIncome, ...]]
    by_us_state: Mapping[str, tuple[CountyIncome, ...]]
    unparsed: int = 0
    unmatched: int = 0
    duplicates: int = 0
    ambiguous_names: int = 0


def _group_by(records: Iterable[CountyIncome], attribute: str) -> Mapping[str, tuple[CountyIncome, ...]]:
    groups: dict[str, list[CountyIncome]] = defaultdict(list)
    for record in records:
        groups[getattr(record, attribute)].append(record)
    return MappingProxyType({key: tuple(values) for key, values in groups.items()})


def reconcile_incomes(
    incomes: Sequence[CountyIncome | None],
    counties: Sequence[County | None],
) -> IncomeIndex:
    """Resolve income rows to county ids by exact county name.

    The first reference entry with a given name wins, matching a linear
    search of the table. Rows whose name has no entry stay out of
    ``by_county_id`` but are kept in the name and state groupings. When two
    income rows resolve to the same id the later row replaces the earlier
    one; each replacement is counted in ``duplicates``.
    """

    id_by_name: dict[str, int] = {}
    ambiguous: set[str] = set()
    for county in counties:
        if county is None:
            continue
        if county.name in id_by_name:
            ambiguous.add(county.name)
            continue
        id_by_name[county.name] = county.id

    by_id: dict[int, CountyIncome] = {}
    annotated: list[CountyIncome] = []
    unparsed = unmatched = duplicates = 0
    for income in incomes:
        if income is None:
            unparsed += 1
            continue
        county_id = id_by_name.get(income.county_name)
        if county_id is None:
            unmatched += 1
            annotated.append(income)
            continue
        income = replace(income, county_id=county_id)
        if county_id in by_id:
            duplicates += 1
            LOGGER.debug(
                "Income row for '%s' replaces an earlier row for county %s",
                income.county_name,
                county_id,
            )
        by_id[county_id] = income
        annotated.append(income)

    return IncomeIndex(
        by_county_id=MappingProxyType(by_id),
        by_county_name=_group_by(annotated, "county_name"),
        by_us_state=_group_by(annotated, "us_state"),
        unparsed=unparsed,
        unmatched=unmatched,
        duplicates=duplicates,
        ambiguous_names=len(ambiguous),
    )


def reconcile_salaries(salaries: Iterable[SalaryRecord | None]) -> tuple[SalaryRecord, ...]:
    """Drop the ``None`` sentinels left by rows that failed to parse."""

    return tuple(record for record in salaries if record is not None)


@dataclass(frozen=True, eq=False)
class DataSets:
    """The consolidated, read-only data model shared after a load.

    Instances compare and hash by identity, which lets downstream caches key
    on the loaded object itself.
    """

    topology: Mapping[str, Any]
    counties: tuple[County, ...]
    median_incomes: Mapping[int, CountyIncome]
    incomes_by_county_name: Mapping[str, tuple[CountyIncome, ...]]
    incomes_by_us_state: Mapping[str, tuple[CountyIncome, ...]]
    tech_salaries: tuple[SalaryRecord, ...]
    us_state_names: tuple[USStateName, ...]
    report: JoinReport = field(default_factory=JoinReport)


def build_datasets(raw: RawDatasets) -> DataSets:
    """Run both reconciliations and bundle the results."""

    with timeit("dataset join", logger=LOGGER, unit="rows", total=len(raw.salaries) + len(raw.incomes)) as timer:
        incomes = reconcile_incomes(raw.incomes, raw.counties)
        salaries = reconcile_salaries(raw.salaries)
        timer.skip(len(raw.salaries) - len(salaries) + incomes.unparsed + incomes.unmatched)

    report = JoinReport(
        salaries_read=len(raw.salaries),
        salaries_dropped=len(raw.salaries) - len(salaries),
        incomes_read=len(raw.incomes),
        incomes_unparsed=incomes.unparsed,
        incomes_unmatched=incomes.unmatched,
        income_duplicates=incomes.duplicates,
        ambiguous_county_names=incomes.ambiguous_names,
    )
    LOGGER.info(
        "Joined %s salaries (%s dropped) and %s county incomes "
        "(%s unparsed, %s unmatched, %s duplicates)",
        len(salaries),
        report.salaries_dropped,
        len(incomes.by_county_id),
        report.incomes_unparsed,
        report.incomes_unmatched,
        report.income_duplicates,
    )
    if report.income_duplicates:
        LOGGER.warning(
            "%s income rows shared a county id with an earlier row; the last row was kept",
            report.income_duplicates,
        )

    return DataSets(
        topology=raw.topology,
        counties=tuple(county for county in raw.counties if county is not None),
        median_incomes=incomes.by_county_id,
        incomes_by_county_name=incomes.by_county_name,
        incomes_by_us_state=incomes.by_us_state,
        tech_salaries=salaries,
        us_state_names=tuple(state for state in raw.state_names if state is not None),
        report=report,
    )


async def load_all_data(
    sources: DataSources,
    *,
    max_base_salary: float = DEFAULT_MAX_BASE_SALARY,
) -> DataSets:
    """Read every source and reconcile them; all-or-nothing."""

    raw = await load_raw_datasets(sources, max_base_salary=max_base_salary)
    return build_datasets(raw)


__all__ = [
    "DataSets",
    "IncomeIndex",
    "JoinReport",
    "build_datasets",
    "load_all_data",
    "reconcile_incomes",
    "reconcile_salaries",
]

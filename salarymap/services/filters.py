"""Salary filter predicates and the compact token that encodes them.

A filter selection is a ``FilteredBy`` with three fields, each either the
wildcard ``"*"`` or a concrete value. ``FilterCodec`` turns it into a
``year-STATE-jobTitle`` token (``2013-CA-manager``) and back so the selection
can travel in a URL.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from salarymap.domain import SalaryRecord

WILDCARD = "*"

SalaryFilter = Callable[[SalaryRecord], bool]


@dataclass(frozen=True, slots=True)
class FilteredBy:
    """Current filter selection; ``"*"`` means no constraint."""

    year: str = WILDCARD
    us_state: str = WILDCARD
    job_title: str = WILDCARD

    @property
    def zoom(self) -> str | None:
        """State code to zoom the map on, if one is selected."""
        return None if _is_wildcard(self.us_state) else self.us_state.upper()


def _is_wildcard(value: str | None) -> bool:
    return not value or value == WILDCARD


def build_salary_filter(filtered_by: FilteredBy) -> SalaryFilter:
    """Compose one predicate that ANDs the year, state and job title checks."""

    checks: list[SalaryFilter] = []
    if not _is_wildcard(filtered_by.year):
        year = int(filtered_by.year)
        checks.append(lambda record: record.submit_date is not None and record.submit_date.year == year)
    if not _is_wildcard(filtered_by.us_state):
        state = filtered_by.us_state.upper()
        checks.append(lambda record: record.us_state.upper() == state)
    if not _is_wildcard(filtered_by.job_title):
        job_title = filtered_by.job_title
        checks.append(lambda record: record.clean_job_title == job_title)

    def _predicate(record: SalaryRecord) -> bool:
        return all(check(record) for check in checks)

    return _predicate


def apply_filter(salaries: Iterable[SalaryRecord], filtered_by: FilteredBy) -> list[SalaryRecord]:
    predicate = build_salary_filter(filtered_by)
    return [record for record in salaries if predicate(record)]


class FilterCodec:
    """Bidirectional codec between ``FilteredBy`` and a URL-safe token."""

    separator = "-"

    def encode(self, filtered_by: FilteredBy) -> str:
        return self.separator.join(
            value or WILDCARD
            for value in (filtered_by.year, filtered_by.us_state, filtered_by.job_title)
        )

    def decode(self, token: str | None) -> FilteredBy:
        """Parse a token; missing or malformed parts become wildcards.

        The job title is everything after the second separator, so titles
        containing the separator survive a round trip.
        """

        parts = (token or "").lstrip("#").split(self.separator, 2)
        parts += [WILDCARD] * (3 - len(parts))
        year, us_state, job_title = (part.strip() or WILDCARD for part in parts)
        if not year.isdigit():
            year = WILDCARD
        if not _is_wildcard(us_state):
            us_state = us_state.upper()
        return FilteredBy(year=year, us_state=us_state, job_title=job_title)


@dataclass(frozen=True, slots=True)
class FilterOptions:
    """Distinct values present in the salary set, one tuple per control row."""

    years: tuple[int, ...]
    job_titles: tuple[str, ...]
    us_states: tuple[str, ...]


def filter_options(salaries: Iterable[SalaryRecord]) -> FilterOptions:
    years: set[int] = set()
    job_titles: set[str] = set()
    us_states: set[str] = set()
    for record in salaries:
        if record.submit_date is not None:
            years.add(record.submit_date.year)
        if record.clean_job_title:
            job_titles.add(record.clean_job_title)
        if record.us_state:
            us_states.add(record.us_state.upper())
    return FilterOptions(
        years=tuple(sorted(years)),
        job_titles=tuple(sorted(job_titles)),
        us_states=tuple(sorted(us_states)),
    )


__all__ = [
    "FilterCodec",
    "FilterOptions",
    "FilteredBy",
    "SalaryFilter",
    "WILDCARD",
    "apply_filter",
    "build_salary_filter",
    "filter_options",
]

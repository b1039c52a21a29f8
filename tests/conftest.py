"""Shared fixtures: a two-state topology and a matching set of datasets."""
from __future__ import annotations

import csv
import json
from datetime import date
from pathlib import Path

import pytest

from salarymap.core.config import DataSources
from salarymap.domain import County, CountyIncome, SalaryRecord, USStateName
from salarymap.geo.projection import clear_projection_cache
from salarymap.services.choropleth import clear_layer_cache
from salarymap.services.join_engine import build_datasets
from salarymap.services.loader import RawDatasets


def make_topology() -> dict:
    """Two side-by-side states sharing arc 0, plus a detached county.

    State 20 spans lon -100..-98, state 31 spans -98..-96, both lat 38..40.
    County 31003 is a small square east of state 31.
    """

    arcs = [
        [[-98.0, 38.0], [-98.0, 40.0]],
        [[-98.0, 40.0], [-100.0, 40.0], [-100.0, 38.0], [-98.0, 38.0]],
        [[-98.0, 38.0], [-96.0, 38.0], [-96.0, 40.0], [-98.0, 40.0]],
        [[-95.0, 38.0], [-94.0, 38.0], [-94.0, 39.0], [-95.0, 39.0], [-95.0, 38.0]],
    ]
    return {
        "type": "Topology",
        "arcs": arcs,
        "objects": {
            "states": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "Polygon", "id": 20, "arcs": [[0, 1]]},
                    {"type": "Polygon", "id": 31, "arcs": [[2, ~0]]},
                ],
            },
            "counties": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "Polygon", "id": 20001, "arcs": [[0, 1]]},
                    {"type": "Polygon", "id": 31001, "arcs": [[2, ~0]]},
                    {"type": "Polygon", "id": 31003, "arcs": [[3]]},
                ],
            },
        },
    }


def make_salary(county: str, base_salary: float, **overrides) -> SalaryRecord:
    values = dict(
        employer="Initech",
        submit_date=date(2014, 3, 1),
        start_date=date(2014, 9, 1),
        case_status="certified",
        job_title="engineer",
        clean_job_title="engineer",
        base_salary=base_salary,
        city="Springfield",
        us_state="KS",
        county=county,
        county_id=None,
    )
    values.update(overrides)
    return SalaryRecord(**values)


@pytest.fixture(autouse=True)
def _fresh_render_caches():
    clear_projection_cache()
    clear_layer_cache()
    yield
    clear_projection_cache()
    clear_layer_cache()


@pytest.fixture
def salary_factory():
    return make_salary


@pytest.fixture
def topology() -> dict:
    return make_topology()


@pytest.fixture
def state_names() -> tuple[USStateName, ...]:
    return (USStateName("KS", 20, "Kansas"), USStateName("NE", 31, "Nebraska"))


@pytest.fixture
def counties() -> list[County]:
    return [County(20001, "Ada"), County(31001, "Box"), County(31003, "Cole")]


@pytest.fixture
def incomes() -> list[CountyIncome]:
    return [
        CountyIncome("United States", "US", 55_000, 54_800, 55_200),
        CountyIncome("Ada", "KS", 60_000, 59_000, 61_000),
        CountyIncome("Box", "NE", 70_000, 69_000, 71_000),
        CountyIncome("Nowhere", "NE", 50_000, 49_000, 51_000),
    ]


@pytest.fixture
def salaries() -> list[SalaryRecord]:
    return [
        make_salary("Ada", 100_000, county_id=20001),
        make_salary("Ada", 120_000, county_id=20001),
        make_salary(
            "Cole",
            90_000,
            county_id=31003,
            us_state="NE",
            clean_job_title="manager",
            job_title="manager",
            submit_date=date(2015, 2, 1),
        ),
    ]


@pytest.fixture
def raw_datasets(topology, counties, incomes, salaries, state_names) -> RawDatasets:
    return RawDatasets(
        topology=topology,
        counties=list(counties),
        incomes=list(incomes),
        salaries=[*salaries, None],
        state_names=list(state_names),
    )


@pytest.fixture
def datasets(raw_datasets):
    return build_datasets(raw_datasets)


def _write_csv(path: Path, header: list[str], rows: list[list[object]], delimiter: str = ",") -> None:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle, delimiter=delimiter)
        writer.writerow(header)
        writer.writerows(rows)


@pytest.fixture
def data_sources(tmp_path: Path) -> DataSources:
    """Raw source files in the formats the loader reads."""

    (tmp_path / "us.json").write_text(json.dumps(make_topology()), encoding="utf-8")
    _write_csv(
        tmp_path / "us-county-names-normalized.csv",
        ["id", "name"],
        [[20001, "Ada"], [31001, "Box"], [31003, "Cole"]],
    )
    _write_csv(
        tmp_path / "county-median-incomes.csv",
        ["Name", "State", "Median Household Income", "90% CI Lower Bound", "90% CI Upper Bound"],
        [
            ["United States", "US", "55000", "54800", "55200"],
            ["Ada", "KS", "60000", "59000", "61000"],
            ["Nowhere", "NE", "50000", "49000", "51000"],
        ],
    )
    _write_csv(
        tmp_path / "h1bs-2012-2018.csv",
        [
            "employer",
            "submit date",
            "start date",
            "case status",
            "job title",
            "base salary",
            "city",
            "state",
            "county",
            "countyID",
        ],
        [
            ["Initech", "03/01/2014", "09/01/2014", "certified", "engineer", "100000", "Springfield", "KS", "Ada", "20001"],
            ["Initech", "03/02/2014", "09/01/2014", "certified", "engineer", "120000", "Springfield", "KS", "Ada", "20001"],
            ["Initrode", "03/02/2014", "", "certified", "engineer", "450000", "Springfield", "KS", "Ada", "20001"],
            ["Initrode", "03/02/2014", "", "certified", "engineer", "", "Springfield", "KS", "Ada", "20001"],
        ],
    )
    _write_csv(
        tmp_path / "us-state-names.tsv",
        ["id", "code", "name"],
        [[20, "KS", "Kansas"], [31, "NE", "Nebraska"]],
        delimiter="\t",
    )
    return DataSources(data_dir=tmp_path)

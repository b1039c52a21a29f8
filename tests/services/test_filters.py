from __future__ import annotations

from datetime import date

import pytest

from salarymap.services.filters import (
    FilterCodec,
    FilteredBy,
    apply_filter,
    build_salary_filter,
    filter_options,
)


@pytest.fixture
def codec() -> FilterCodec:
    return FilterCodec()


def test_wildcard_filter_keeps_everything(salaries) -> None:
    assert apply_filter(salaries, FilteredBy()) == list(salaries)


def test_filters_combine_year_state_and_title(salaries) -> None:
    assert len(apply_filter(salaries, FilteredBy(year="2014"))) == 2
    assert len(apply_filter(salaries, FilteredBy(us_state="ne"))) == 1
    assert apply_filter(salaries, FilteredBy(year="2014", job_title="manager")) == []


def test_year_filter_reads_the_submit_date(salary_factory) -> None:
    record = salary_factory("Ada", 80_000, submit_date=date(2016, 1, 5), start_date=date(2017, 1, 5))
    predicate = build_salary_filter(FilteredBy(year="2016"))

    assert predicate(record)
    assert not build_salary_filter(FilteredBy(year="2017"))(record)


def test_zoom_is_the_upper_cased_state(codec) -> None:
    assert FilteredBy().zoom is None
    assert FilteredBy(us_state="ca").zoom == "CA"


def test_codec_encodes_in_year_state_title_order(codec) -> None:
    assert codec.encode(FilteredBy()) == "*-*-*"
    assert codec.encode(FilteredBy("2013", "CA", "manager")) == "2013-CA-manager"


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("2013-CA-manager", FilteredBy("2013", "CA", "manager")),
        ("#2013-ca-*", FilteredBy("2013", "CA", "*")),
        ("*-TX-data-scientist", FilteredBy("*", "TX", "data-scientist")),
        ("2014", FilteredBy("2014", "*", "*")),
        ("bogus-WA-engineer", FilteredBy("*", "WA", "engineer")),
        ("", FilteredBy()),
        (None, FilteredBy()),
    ],
)
def test_codec_decodes_partial_and_malformed_tokens(codec, token, expected) -> None:
    assert codec.decode(token) == expected


def test_filter_options_are_sorted_and_distinct(salaries) -> None:
    options = filter_options(salaries)

    assert options.years == (2014, 2015)
    assert options.job_titles == ("engineer", "manager")
    assert options.us_states == ("KS", "NE")

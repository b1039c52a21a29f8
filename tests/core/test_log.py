import logging

import pytest

from salarymap.core.log import log_context, timeit
from salarymap.core.log.context import ContextFilter


def _record() -> logging.LogRecord:
    return logging.LogRecord("salarymap.test", logging.INFO, __file__, 1, "hello", None, None)


def test_scoped_context_prefixes_records_and_skips_wildcards() -> None:
    context_filter = ContextFilter()

    with log_context.scoped(job="dataset_load", year="*", state="CA"):
        record = _record()
        context_filter.filter(record)
        assert record.context == "[job=dataset_load state=CA] "

    record = _record()
    context_filter.filter(record)
    assert record.context == ""


def test_timeit_logs_counts_and_skips(caplog) -> None:
    logger = logging.getLogger("salarymap.test.timing")

    with caplog.at_level(logging.INFO, logger="salarymap.test.timing"):
        with timeit("dataset join", logger=logger, unit="rows", total=10) as watch:
            watch.skip(3)

    message = caplog.records[-1].getMessage()
    assert message.startswith("dataset join: 10 rows in ")
    assert message.endswith("3 skipped")


def test_timeit_reports_failures(caplog) -> None:
    logger = logging.getLogger("salarymap.test.timing")

    with caplog.at_level(logging.INFO, logger="salarymap.test.timing"):
        with pytest.raises(RuntimeError):
            with timeit("map render", logger=logger):
                raise RuntimeError("boom")

    assert caplog.records[-1].levelno == logging.ERROR
    assert "map render failed" in caplog.records[-1].getMessage()


def test_timeit_counts_added_items_until_a_total_is_set(caplog) -> None:
    logger = logging.getLogger("salarymap.test.timing")

    with caplog.at_level(logging.DEBUG, logger="salarymap.test.timing"):
        with timeit("county aggregation", logger=logger, level=logging.DEBUG, unit="counties") as watch:
            watch.add()
            watch.add(2)
        with timeit("choropleth render", logger=logger, unit="counties") as watch:
            watch.add()
            watch.set_total(3_100)

    aggregated, rendered = (record.getMessage() for record in caplog.records[-2:])
    assert aggregated.startswith("county aggregation: 3 counties in ")
    assert rendered.startswith("choropleth render: 3,100 counties in ")

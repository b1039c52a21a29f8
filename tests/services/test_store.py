from __future__ import annotations

import asyncio

import pytest

from salarymap.domain import DatasetLoadError
from salarymap.services.join_engine import load_all_data
from salarymap.services.store import DatasetNotReady, DatasetStore, LoadState


def test_store_starts_awaiting() -> None:
    store = DatasetStore(None)

    assert store.state is LoadState.AWAITING
    with pytest.raises(DatasetNotReady):
        store.datasets


def test_concurrent_loads_share_one_read(datasets) -> None:
    calls = 0

    async def _loader():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0)
        return datasets

    store = DatasetStore(_loader)

    async def _run():
        return await asyncio.gather(store.load(), store.load(), store.load())

    results = asyncio.run(_run())

    assert calls == 1
    assert all(result is datasets for result in results)
    assert store.state is LoadState.READY
    assert store.datasets is datasets


def test_failed_load_is_kept_and_can_be_retried(datasets) -> None:
    attempts = []

    async def _loader():
        attempts.append(1)
        if len(attempts) == 1:
            raise DatasetLoadError("salaries", FileNotFoundError("h1bs.csv"))
        return datasets

    store = DatasetStore(_loader)

    with pytest.raises(DatasetLoadError):
        asyncio.run(store.load())
    assert store.state is LoadState.FAILED
    assert "salaries" in str(store.error)
    with pytest.raises(DatasetNotReady):
        store.datasets

    assert asyncio.run(store.load()) is datasets
    assert store.state is LoadState.READY
    assert store.error is None


def test_set_installs_a_prebuilt_model(datasets) -> None:
    store = DatasetStore(None)
    store.set(datasets)

    assert store.state is LoadState.READY
    assert asyncio.run(store.load()) is datasets


def test_unexpected_loader_error_marks_the_store_failed() -> None:
    async def _loader():
        raise RuntimeError("disk on fire")

    store = DatasetStore(_loader)

    with pytest.raises(DatasetLoadError) as excinfo:
        asyncio.run(store.load())

    assert isinstance(excinfo.value.reason, RuntimeError)
    assert store.state is LoadState.FAILED
    assert store.error is excinfo.value


def test_oversized_csv_field_reports_failed_status(data_sources) -> None:
    with data_sources.path("salaries").open("a", newline="", encoding="utf-8") as handle:
        handle.write('Initech,03/01/2014,,certified,"' + "x" * 200_000 + '",100000,Springfield,KS,Ada,20001\n')
    store = DatasetStore(lambda: load_all_data(data_sources))

    with pytest.raises(DatasetLoadError):
        asyncio.run(store.load())

    assert store.state is LoadState.FAILED
    assert "salaries" in str(store.error)

"""Holds the loaded data model and tracks whether it is ready."""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, Callable

from salarymap.core.config import Settings
from salarymap.core.logger import get_logger, log_context
from salarymap.domain import DatasetLoadError
from salarymap.services.join_engine import DataSets, load_all_data

LOGGER = get_logger(__name__)

Loader = Callable[[], Awaitable[DataSets]]


class LoadState(str, Enum):
    AWAITING = "awaiting"
    READY = "ready"
    FAILED = "failed"


class DatasetNotReady(RuntimeError):
    """Raised when the data model is requested before a load succeeded."""

    def __init__(self, state: LoadState) -> None:
        super().__init__(f"Datasets are not available (state: {state.value})")
        self.state = state


class DatasetStore:
    """Owns the one ``DataSets`` instance for the process.

    Concurrent ``load`` calls share a single in-flight load. A failed load
    leaves the store without data; calling ``load`` again retries.
    """

    def __init__(self, loader: Loader) -> None:
        self._loader = loader
        self._datasets: DataSets | None = None
        self._state = LoadState.AWAITING
        self._error: DatasetLoadError | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatasetStore":
        async def _load() -> DataSets:
            return await load_all_data(settings.sources, max_base_salary=settings.max_base_salary)

        return cls(_load)

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def error(self) -> DatasetLoadError | None:
        return self._error

    @property
    def datasets(self) -> DataSets:
        if self._datasets is None:
            raise DatasetNotReady(self._state)
        return self._datasets

    def set(self, datasets: DataSets) -> None:
        """Install an already built data model."""
        self._datasets = datasets
        self._state = LoadState.READY
        self._error = None

    def _fail(self, error: DatasetLoadError) -> None:
        self._state = LoadState.FAILED
        self._error = error
        LOGGER.error("Dataset load failed: %s", error)

    async def load(self) -> DataSets:
        if self._datasets is not None:
            return self._datasets
        async with self._lock:
            if self._datasets is not None:
                return self._datasets
            self._state = LoadState.AWAITING
            with log_context.scoped(job="dataset_load"):
                try:
                    datasets = await self._loader()
                except DatasetLoadError as exc:
                    self._fail(exc)
                    raise
                except Exception as exc:
                    error = DatasetLoadError("datasets", exc)
                    self._fail(error)
                    raise error from exc
            self.set(datasets)
            LOGGER.info("Datasets ready: %s salaries", len(datasets.tech_salaries))
            return datasets


__all__ = ["DatasetNotReady", "DatasetStore", "LoadState"]

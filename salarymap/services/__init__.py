"""Service layer entrypoints for the salary map pipeline."""

from .dashboard import DashboardService, DashboardView
from .filters import FilterCodec, FilteredBy
from .join_engine import DataSets, build_datasets, load_all_data
from .store import DatasetNotReady, DatasetStore, LoadState

__all__ = [
    "DashboardService",
    "DashboardView",
    "DataSets",
    "DatasetNotReady",
    "DatasetStore",
    "FilterCodec",
    "FilteredBy",
    "LoadState",
    "build_datasets",
    "load_all_data",
]

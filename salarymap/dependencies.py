"""Shared FastAPI dependency definitions."""
from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from salarymap.core.config import get_settings
from salarymap.services import (
    DashboardService,
    DataSets,
    DatasetNotReady,
    DatasetStore,
    FilterCodec,
)


def get_dataset_store(request: Request) -> DatasetStore:
    """Return the store created by the application factory."""

    return request.app.state.dataset_store


def get_datasets(store: DatasetStore = Depends(get_dataset_store)) -> DataSets:
    """Yield the loaded data model or answer 503 while it is not ready."""

    try:
        return store.datasets
    except DatasetNotReady as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def get_dashboard_service() -> DashboardService:
    """Return a new ``DashboardService`` for the request lifecycle."""

    return DashboardService.from_settings(get_settings())


def get_filter_codec() -> FilterCodec:
    return FilterCodec()

"""JSON endpoints exposing the joined data model and the choropleth."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from salarymap.dependencies import (
    get_dashboard_service,
    get_dataset_store,
    get_datasets,
    get_filter_codec,
)
from salarymap.domain import UnknownStateError
from salarymap.schemas import (
    ChoroplethResponse,
    DashboardSummary,
    FilterOptionsResponse,
    FilterSelection,
    LoadStatus,
)
from salarymap.services import DashboardService, DashboardView, DataSets, DatasetStore, FilterCodec
from salarymap.services.filters import filter_options

router = APIRouter(prefix="/api", tags=["api"])


def _build_view(
    token: str | None,
    datasets: DataSets,
    service: DashboardService,
    codec: FilterCodec,
) -> tuple[DashboardView, FilterSelection]:
    filtered_by = codec.decode(token)
    try:
        view = service.build(datasets, filtered_by)
    except UnknownStateError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return view, FilterSelection.from_filter(filtered_by, codec.encode(filtered_by))


@router.get("/status", response_model=LoadStatus)
async def read_status(store: DatasetStore = Depends(get_dataset_store)) -> LoadStatus:
    return LoadStatus(state=store.state.value, detail=str(store.error) if store.error else None)


@router.get("/choropleth", response_model=ChoroplethResponse)
async def read_choropleth(
    filter: str | None = Query(None),
    datasets: DataSets = Depends(get_datasets),
    service: DashboardService = Depends(get_dashboard_service),
    codec: FilterCodec = Depends(get_filter_codec),
) -> ChoroplethResponse:
    view, selection = _build_view(filter, datasets, service, codec)
    return ChoroplethResponse.from_choropleth(view.choropleth, selection)


@router.get("/summary", response_model=DashboardSummary)
async def read_summary(
    filter: str | None = Query(None),
    datasets: DataSets = Depends(get_datasets),
    service: DashboardService = Depends(get_dashboard_service),
    codec: FilterCodec = Depends(get_filter_codec),
) -> DashboardSummary:
    view, selection = _build_view(filter, datasets, service, codec)
    return DashboardSummary.from_view(view, selection)


@router.get("/filters", response_model=FilterOptionsResponse)
async def read_filter_options(datasets: DataSets = Depends(get_datasets)) -> FilterOptionsResponse:
    return FilterOptionsResponse.from_options(filter_options(datasets.tech_salaries))

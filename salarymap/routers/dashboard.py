"""Server-rendered dashboard page."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, Response

from salarymap.core.logger import get_logger
from salarymap.core.templates import render_map_svg, templates
from salarymap.dependencies import get_dashboard_service, get_dataset_store, get_filter_codec
from salarymap.domain import UnknownStateError
from salarymap.services import DashboardService, DatasetStore, FilterCodec, LoadState

router = APIRouter(prefix="/dashboard", tags=["dashboard"])
LOGGER = get_logger(__name__)


def _loading_page(request: Request, store: DatasetStore) -> HTMLResponse:
    return templates.TemplateResponse(
        request=request,
        name="dashboard/loading.html",
        context={
            "state": store.state.value,
            "detail": str(store.error) if store.error else None,
        },
        status_code=503,
    )


@router.get("/", summary="Salary map dashboard", response_class=HTMLResponse)
async def read_dashboard(
    request: Request,
    filter: str | None = Query(None, description="Filter token such as 2014-CA-engineer"),
    store: DatasetStore = Depends(get_dataset_store),
    service: DashboardService = Depends(get_dashboard_service),
    codec: FilterCodec = Depends(get_filter_codec),
) -> HTMLResponse:
    """Render the choropleth and headline statistics for a filter token."""

    if store.state is not LoadState.READY:
        return _loading_page(request, store)

    filtered_by = codec.decode(filter)
    LOGGER.info("Dashboard requested for '%s'", codec.encode(filtered_by))
    try:
        view = service.build(store.datasets, filtered_by)
    except UnknownStateError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return templates.TemplateResponse(
        request=request,
        name="dashboard/index.html",
        context={
            "page_title": "H-1B salaries vs. household income",
            "heading": "H-1B tech salaries compared to median household income",
            "token": codec.encode(filtered_by),
            "view": view,
        },
    )


@router.get("/map.svg", summary="Choropleth as SVG")
async def read_map_svg(
    filter: str | None = Query(None),
    store: DatasetStore = Depends(get_dataset_store),
    service: DashboardService = Depends(get_dashboard_service),
    codec: FilterCodec = Depends(get_filter_codec),
) -> Response:
    if store.state is not LoadState.READY:
        raise HTTPException(status_code=503, detail="Datasets are still loading")
    try:
        view = service.build(store.datasets, codec.decode(filter))
    except UnknownStateError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(content=render_map_svg(view.choropleth), media_type="image/svg+xml")

"""Pydantic schemas for the JSON endpoints."""

from .dashboard import (
    ChoroplethResponse,
    CountyShapeSchema,
    DashboardSummary,
    FilterOptionsResponse,
    FilterSelection,
    LoadStatus,
)

__all__ = [
    "ChoroplethResponse",
    "CountyShapeSchema",
    "DashboardSummary",
    "FilterOptionsResponse",
    "FilterSelection",
    "LoadStatus",
]

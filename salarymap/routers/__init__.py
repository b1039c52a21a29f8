"""FastAPI routers for the salary map application."""

from .api import router as api_router
from .dashboard import router as dashboard_router

__all__ = ["api_router", "dashboard_router"]

"""Shared Jinja2 environment for pages and the standalone SVG map."""
from __future__ import annotations

from pathlib import Path

from fastapi.templating import Jinja2Templates

from salarymap.core.formatting import format_delta, format_salary, humanize_currency
from salarymap.services.quantize import BLANK_COLOR, CHOROPLETH_COLORS

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

templates.env.filters["humanize_currency"] = humanize_currency
templates.env.filters["format_salary"] = format_salary
templates.env.filters["format_delta"] = format_delta

templates.env.globals["choropleth_colors"] = CHOROPLETH_COLORS
templates.env.globals["blank_color"] = BLANK_COLOR


def render_map_svg(choropleth) -> str:
    """Serialize a ``Choropleth`` as a standalone SVG document."""

    return templates.env.get_template("dashboard/map.svg").render(
        choropleth=choropleth,
        standalone=True,
    )

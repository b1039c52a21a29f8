#!/usr/bin/env python3
"""Render the salary-versus-income choropleth for one filter to an SVG file."""
from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

from salarymap.core.config import get_settings
from salarymap.core.log import (
    get_logger,
    init_logging,
    log_context,
    progress_manager,
    set_level,
    shutdown_logging,
    timeit,
)
from salarymap.core.templates import render_map_svg
from salarymap.domain import DatasetLoadError, UnknownStateError
from salarymap.services import DashboardService, FilterCodec, load_all_data

logger = get_logger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--filter",
        default="*-*-*",
        help="Filter token year-STATE-jobTitle, e.g. 2014-CA-engineer (default: everything)",
    )
    parser.add_argument("--data-dir", type=Path, default=None, help="Override DATA_DIR")
    parser.add_argument("--output", type=Path, default=Path("map.svg"), help="SVG file to write")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-step timings")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    if args.verbose:
        set_level("DEBUG")
    settings = get_settings()
    sources = settings.sources
    if args.data_dir is not None:
        sources = replace(sources, data_dir=args.data_dir)

    codec = FilterCodec()
    filtered_by = codec.decode(args.filter)
    log_context.bind(job="render_map", filter=codec.encode(filtered_by))

    try:
        with progress_manager.spinner("Loading datasets"):
            datasets = asyncio.run(load_all_data(sources, max_base_salary=settings.max_base_salary))
    except DatasetLoadError as exc:
        logger.error("%s", exc)
        return 1

    service = DashboardService.from_settings(settings)
    try:
        with timeit("map render", logger=logger, unit="counties"):
            view = service.build(datasets, filtered_by)
    except UnknownStateError as exc:
        logger.error("%s", exc)
        return 2

    args.output.write_text(render_map_svg(view.choropleth), encoding="utf-8")
    logger.info(
        "Wrote %s (%s counties, %s with data)",
        args.output,
        len(view.choropleth.counties),
        view.choropleth.counties_with_data,
    )
    return 0


if __name__ == "__main__":
    settings = get_settings()
    init_logging(app_name="render-map", level=settings.log_level, log_dir=settings.log_dir)
    try:
        exit_code = main()
    finally:
        shutdown_logging()
    sys.exit(exit_code)

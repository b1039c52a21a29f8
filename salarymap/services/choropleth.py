"""Compose projection, color scale and topology into drawable map shapes."""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Any, Mapping, Sequence

from salarymap.core.logger import get_logger, timeit
from salarymap.domain import CountyValue
from salarymap.geo.projection import GeoPath
from salarymap.geo.topology import different_geometries, feature, mesh, normalize_feature_id
from salarymap.services.quantize import QuantizeScale, county_color

LOGGER = get_logger(__name__)

BORDER_STROKE = "#fff"


@dataclass(frozen=True, slots=True)
class CountyShape:
    """One filled county path."""

    county_id: Any
    path: str
    fill: str
    value: float | None
    bucket: int | None


@dataclass(frozen=True, slots=True)
class BorderShape:
    """The state-border mesh, stroked on top of the county fills."""

    path: str
    stroke: str = BORDER_STROKE


@dataclass(frozen=True, slots=True)
class Choropleth:
    """Renderable shape collection for one drawing area."""

    x: float
    y: float
    width: float
    height: float
    zoom: str | None
    counties: tuple[CountyShape, ...]
    borders: BorderShape
    domain: tuple[float, float]

    @property
    def counties_with_data(self) -> int:
        return sum(1 for shape in self.counties if shape.value is not None)


@dataclass(frozen=True, slots=True)
class MapLayers:
    """Decoded county features and state-border mesh of one topology."""

    counties: tuple[Mapping[str, Any], ...]
    borders: Mapping[str, Any]


_LAYER_CACHE: "OrderedDict[tuple[int, bool], tuple[Mapping[str, Any], MapLayers]]" = OrderedDict()
_LAYER_CACHE_SIZE = 4
_layer_lock = Lock()


def map_layers(topology: Mapping[str, Any], *, include_exterior: bool = False) -> MapLayers:
    """Decode the ``counties`` and ``states`` objects once per topology.

    Cached on the identity of ``topology``, which must not be mutated once
    it has been rendered.
    """

    key = (id(topology), include_exterior)
    with _layer_lock:
        cached = _LAYER_CACHE.get(key)
        if cached is not None and cached[0] is topology:
            _LAYER_CACHE.move_to_end(key)
            return cached[1]

    border_filter = None if include_exterior else different_geometries
    layers = MapLayers(
        counties=tuple(feature(topology, "counties")["features"]),
        borders=mesh(topology, "states", border_filter),
    )
    with _layer_lock:
        _LAYER_CACHE[key] = (topology, layers)
        while len(_LAYER_CACHE) > _LAYER_CACHE_SIZE:
            _LAYER_CACHE.popitem(last=False)
    return layers


def clear_layer_cache() -> None:
    with _layer_lock:
        _LAYER_CACHE.clear()


def render(
    topology: Mapping[str, Any],
    geo_path: GeoPath,
    quantize: QuantizeScale,
    values: Sequence[CountyValue],
    *,
    x: float = 0,
    y: float = 0,
    width: float = 500,
    height: float = 500,
    zoom: str | None = None,
    include_exterior: bool = False,
) -> Choropleth:
    """Build one shape per county feature plus the state-border overlay.

    Counties without a value are kept and filled with the blank color, so the
    map always covers every county in the topology. The border mesh keeps
    only arcs shared by two different states unless ``include_exterior``
    adds the national outline as well.
    """

    value_by_id = {normalize_feature_id(value.county_id): value.value for value in values}

    with timeit("choropleth render", logger=LOGGER, level=logging.DEBUG, unit="counties") as timer:
        layers = map_layers(topology, include_exterior=include_exterior)
        counties = layers.counties
        timer.set_total(len(counties))
        shapes = []
        for county in counties:
            county_id = county.get("id")
            value = value_by_id.get(normalize_feature_id(county_id))
            fill, bucket = county_color(value, quantize)
            shapes.append(
                CountyShape(
                    county_id=county_id,
                    path=geo_path(county),
                    fill=fill,
                    value=value,
                    bucket=bucket,
                )
            )
        borders = BorderShape(path=geo_path(layers.borders))

    return Choropleth(
        x=x,
        y=y,
        width=width,
        height=height,
        zoom=zoom,
        counties=tuple(shapes),
        borders=borders,
        domain=quantize.domain,
    )


__all__ = [
    "BorderShape",
    "Choropleth",
    "CountyShape",
    "MapLayers",
    "clear_layer_cache",
    "map_layers",
    "render",
]

"""Albers USA projection, SVG path generation and zoom recentering."""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from functools import cached_property
from threading import Lock
from typing import Any, Iterable, Iterator, Mapping, Sequence

import numpy as np
from pyproj import CRS, Transformer
from shapely.geometry import MultiLineString, MultiPoint, MultiPolygon, Polygon

from salarymap.core.logger import get_logger
from salarymap.domain import USStateName, UnknownStateError
from salarymap.geo.topology import feature, normalize_feature_id

LOGGER = get_logger(__name__)

_UNIT_SPHERE = CRS.from_proj4("+proj=longlat +R=1 +no_defs")

DEFAULT_SCALE = 1070.0
PATH_DIGITS = 3


@dataclass(frozen=True)
class ConicEqualArea:
    """Albers conic equal-area projection on the unit sphere.

    ``center`` is the geographic point that lands on the projection origin.
    ``offset`` and ``extent`` are in scale-normalized units relative to the
    translate point, which is how the Alaska and Hawaii insets are placed.
    """

    parallels: tuple[float, float]
    central_meridian: float
    center: tuple[float, float]
    relative_scale: float = 1.0
    offset: tuple[float, float] = (0.0, 0.0)
    extent: tuple[float, float, float, float] = (-np.inf, -np.inf, np.inf, np.inf)

    @cached_property
    def _transformer(self) -> Transformer:
        crs = CRS.from_proj4(
            f"+proj=aea +lat_1={self.parallels[0]} +lat_2={self.parallels[1]} "
            f"+lat_0=0 +lon_0={self.central_meridian} +R=1 +no_defs"
        )
        return Transformer.from_crs(_UNIT_SPHERE, crs, always_xy=True)

    @cached_property
    def _origin(self) -> tuple[float, float]:
        x, y = self._transformer.transform(*self.center)
        return float(x), float(y)

    def normalized(self, lons: np.ndarray, lats: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Screen coordinates for scale 1 and translate (0, 0); y points down."""

        x, y = self._transformer.transform(lons, lats)
        x = (np.asarray(x, dtype=float) - self._origin[0]) * self.relative_scale + self.offset[0]
        y = -(np.asarray(y, dtype=float) - self._origin[1]) * self.relative_scale + self.offset[1]
        return x, y

    def contains(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        x0, y0, x1, y1 = self.extent
        return (x >= x0) & (x < x1) & (y >= y0) & (y < y1)


LOWER_48 = ConicEqualArea(
    parallels=(29.5, 45.5),
    central_meridian=-96.0,
    center=(-96.6, 38.7),
    extent=(-0.455, -0.238, 0.455, 0.238),
)
ALASKA = ConicEqualArea(
    parallels=(55.0, 65.0),
    central_meridian=-154.0,
    center=(-156.0, 58.5),
    relative_scale=0.35,
    offset=(-0.307, 0.201),
    extent=(-0.425, 0.120, -0.214, 0.234),
)
HAWAII = ConicEqualArea(
    parallels=(8.0, 18.0),
    central_meridian=-157.0,
    center=(-160.0, 19.9),
    offset=(-0.205, 0.212),
    extent=(-0.214, 0.166, -0.115, 0.234),
)


class AlbersUsa:
    """Composite projection of the lower 48 states with Alaska and Hawaii insets.

    A point is drawn by the first of lower 48, Alaska and Hawaii whose inset
    box contains it. Rings and lines are assigned to one inset as a whole, by
    majority of their vertices, so a county never straddles two insets.
    """

    parts: tuple[ConicEqualArea, ...] = (LOWER_48, ALASKA, HAWAII)

    def __init__(self, scale: float = DEFAULT_SCALE, translate: tuple[float, float] = (480.0, 250.0)) -> None:
        self.scale = float(scale)
        self.translate = (float(translate[0]), float(translate[1]))

    def _to_screen(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return np.column_stack((x * self.scale + self.translate[0], y * self.scale + self.translate[1]))

    def __call__(self, lon: float, lat: float) -> tuple[float, float] | None:
        lons, lats = np.asarray([lon], dtype=float), np.asarray([lat], dtype=float)
        for part in self.parts:
            x, y = part.normalized(lons, lats)
            if part.contains(x, y)[0]:
                point = self._to_screen(x, y)[0]
                return float(point[0]), float(point[1])
        return None

    def project_line(self, coordinates: Sequence[Sequence[float]]) -> np.ndarray | None:
        """Project a ring or line with the inset holding most of its vertices."""

        if len(coordinates) == 0:
            return None
        points = np.asarray(coordinates, dtype=float)[:, :2]
        best: tuple[int, np.ndarray, np.ndarray] | None = None
        for part in self.parts:
            x, y = part.normalized(points[:, 0], points[:, 1])
            inside = int(np.count_nonzero(part.contains(x, y)))
            if inside and (best is None or inside > best[0]):
                best = (inside, x, y)
        if best is None:
            return None
        return self._to_screen(best[1], best[2])


@dataclass(frozen=True)
class ProjectedGeometry:
    """Screen-space rings and lines for one GeoJSON object."""

    polygons: tuple[tuple[np.ndarray, ...], ...] = ()
    lines: tuple[np.ndarray, ...] = ()
    points: tuple[tuple[float, float], ...] = ()


def _geometries(obj: Mapping[str, Any] | None) -> Iterator[Mapping[str, Any]]:
    if obj is None:
        return
    kind = obj.get("type")
    if kind == "FeatureCollection":
        for member in obj.get("features", ()):
            yield from _geometries(member)
    elif kind == "Feature":
        yield from _geometries(obj.get("geometry"))
    elif kind == "GeometryCollection":
        for member in obj.get("geometries", ()):
            yield from _geometries(member)
    else:
        yield obj


def _format(value: float) -> str:
    text = f"{value:.{PATH_DIGITS}f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _ring_path(points: np.ndarray, closed: bool) -> str:
    pairs = [f"{_format(x)},{_format(y)}" for x, y in points]
    return "M" + "L".join(pairs) + ("Z" if closed else "")


class GeoPath:
    """Turns GeoJSON into SVG path data through a projection."""

    def __init__(self, projection: AlbersUsa) -> None:
        self.projection = projection

    def project(self, obj: Mapping[str, Any] | None) -> ProjectedGeometry:
        polygons: list[tuple[np.ndarray, ...]] = []
        lines: list[np.ndarray] = []
        points: list[tuple[float, float]] = []
        for geometry in _geometries(obj):
            kind = geometry.get("type")
            coordinates = geometry.get("coordinates") or []
            if kind == "Point":
                coordinates, kind = [coordinates], "MultiPoint"
            if kind == "MultiPoint":
                points.extend(p for p in (self.projection(*c[:2]) for c in coordinates) if p)
            elif kind == "LineString":
                lines.extend(self._lines([coordinates]))
            elif kind == "MultiLineString":
                lines.extend(self._lines(coordinates))
            elif kind == "Polygon":
                polygons.extend(self._polygons([coordinates]))
            elif kind == "MultiPolygon":
                polygons.extend(self._polygons(coordinates))
        return ProjectedGeometry(tuple(polygons), tuple(lines), tuple(points))

    def _lines(self, lines: Iterable[Sequence[Sequence[float]]]) -> Iterator[np.ndarray]:
        for line in lines:
            projected = self.projection.project_line(line)
            if projected is not None and len(projected) >= 2:
                yield projected

    def _polygons(self, polygons: Iterable[Sequence[Sequence[Sequence[float]]]]) -> Iterator[tuple[np.ndarray, ...]]:
        for rings in polygons:
            projected = [self.projection.project_line(ring) for ring in rings]
            if not projected or projected[0] is None or len(projected[0]) < 3:
                continue
            yield tuple(ring for ring in projected if ring is not None and len(ring) >= 3)

    def __call__(self, obj: Mapping[str, Any] | None) -> str:
        """SVG ``d`` attribute; an empty string when nothing is visible."""

        projected = self.project(obj)
        parts = [
            _ring_path(ring[:-1] if np.array_equal(ring[0], ring[-1]) else ring, closed=True)
            for polygon in projected.polygons
            for ring in polygon
        ]
        parts.extend(_ring_path(line, closed=False) for line in projected.lines)
        return "".join(parts)

    def centroid(self, obj: Mapping[str, Any] | None) -> tuple[float, float]:
        """Planar centroid in screen space.

        Areas dominate lines and lines dominate points, so a feature with any
        polygon is weighted purely by area. ``(nan, nan)`` when nothing is
        visible.
        """

        projected = self.project(obj)
        if projected.polygons:
            shape = MultiPolygon([Polygon(rings[0], rings[1:]) for rings in projected.polygons])
            if shape.area > 0:
                return shape.centroid.x, shape.centroid.y
        if projected.lines:
            shape = MultiLineString([line.tolist() for line in projected.lines])
            if shape.length > 0:
                return shape.centroid.x, shape.centroid.y
        if projected.points:
            shape = MultiPoint(list(projected.points))
            return shape.centroid.x, shape.centroid.y
        return float("nan"), float("nan")


def _state_feature(
    topology: Mapping[str, Any],
    state_names: Sequence[USStateName],
    zoom: str,
) -> Mapping[str, Any]:
    code = zoom.upper()
    state = next((s for s in state_names if s.code.upper() == code), None)
    if state is None:
        raise UnknownStateError(zoom)
    for candidate in feature(topology, "states")["features"]:
        if normalize_feature_id(candidate.get("id")) == state.id:
            return candidate
    raise UnknownStateError(zoom)


def _build(
    width: float,
    height: float,
    zoom: str | None,
    topology: Mapping[str, Any] | None,
    state_names: Sequence[USStateName],
    base_scale_factor: float,
    zoom_scale_factor: float,
    fallback: bool,
) -> GeoPath:
    projection = AlbersUsa(scale=width * base_scale_factor, translate=(width / 2, height / 2))
    path = GeoPath(projection)
    if not zoom or topology is None:
        return path

    try:
        state = _state_feature(topology, state_names, zoom)
    except UnknownStateError:
        if not fallback:
            raise
        LOGGER.warning("Unknown zoom selector '%s'; rendering the unzoomed map", zoom)
        return path

    projection.scale = width * zoom_scale_factor
    cx, cy = path.centroid(state)
    if not (np.isfinite(cx) and np.isfinite(cy)):
        if not fallback:
            raise UnknownStateError(zoom)
        LOGGER.warning("State '%s' has no visible geometry; rendering the unzoomed map", zoom)
        projection.scale = width * base_scale_factor
        return path
    tx, ty = projection.translate
    projection.translate = (tx - cx + width / 2, ty - cy + height / 2)
    return path


_PROJECTION_CACHE: "OrderedDict[tuple[Any, ...], tuple[Any, Any, GeoPath]]" = OrderedDict()
_PROJECTION_CACHE_SIZE = 16
_projection_lock = Lock()


def build_projection(
    width: float,
    height: float,
    zoom: str | None,
    topology: Mapping[str, Any] | None,
    state_names: Sequence[USStateName],
    *,
    base_scale_factor: float = 1.3,
    zoom_scale_factor: float = 4.5,
    fallback: bool = True,
) -> GeoPath:
    """Path generator for a ``width`` x ``height`` drawing area.

    Unzoomed, the continental map is centered in the area. With a zoom
    selector the scale grows to ``width * zoom_scale_factor`` and the map is
    shifted so the selected state's centroid sits at the area's center. An
    unresolvable selector raises ``UnknownStateError`` unless ``fallback``
    is set, in which case the unzoomed path is returned.

    Results are cached on the size, selector, tuning and the identity of the
    topology and state list, so repeated renders reuse one projection.
    """

    key = (
        width,
        height,
        zoom.upper() if zoom else None,
        id(topology),
        id(state_names),
        base_scale_factor,
        zoom_scale_factor,
        fallback,
    )
    with _projection_lock:
        cached = _PROJECTION_CACHE.get(key)
        # ids can be reused after garbage collection; confirm the objects match.
        if cached is not None and cached[0] is topology and cached[1] is state_names:
            _PROJECTION_CACHE.move_to_end(key)
            return cached[2]

    path = _build(
        width,
        height,
        zoom,
        topology,
        state_names,
        base_scale_factor,
        zoom_scale_factor,
        fallback,
    )
    with _projection_lock:
        _PROJECTION_CACHE[key] = (topology, state_names, path)
        while len(_PROJECTION_CACHE) > _PROJECTION_CACHE_SIZE:
            _PROJECTION_CACHE.popitem(last=False)
    return path


def clear_projection_cache() -> None:
    with _projection_lock:
        _PROJECTION_CACHE.clear()


__all__ = [
    "AlbersUsa",
    "ConicEqualArea",
    "GeoPath",
    "ProjectedGeometry",
    "build_projection",
    "clear_projection_cache",
]

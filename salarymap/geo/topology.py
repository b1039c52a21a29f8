"""Decode TopoJSON objects into GeoJSON features and border meshes.

A topology stores every shared boundary once, as an arc. Geometries refer to
arcs by index, and a negative index ``~i`` means arc ``i`` traversed in
reverse. When the document is quantized, arc positions are delta-encoded
integers that ``transform`` maps back to longitude/latitude.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

import numpy as np

from salarymap.domain import TopologyError

Geometry = Mapping[str, Any]
MeshFilter = Callable[[Geometry, Geometry], bool]


def normalize_feature_id(value: Any) -> Any:
    """Feature ids may be ints or zero-padded strings; compare them as ints."""

    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class _Decoder:
    """Arc and position decoding for one topology document."""

    def __init__(self, topology: Mapping[str, Any]) -> None:
        self.topology = topology
        transform = topology.get("transform")
        if transform:
            self._scale = np.asarray(transform["scale"], dtype=float)
            self._translate = np.asarray(transform["translate"], dtype=float)
        else:
            self._scale = self._translate = None
        self._arcs: list[np.ndarray | None] = [None] * len(topology.get("arcs", ()))

    def _raw_arc(self, index: int) -> np.ndarray:
        return np.asarray([position[:2] for position in self.topology["arcs"][index]], dtype=float)

    def arc(self, index: int) -> np.ndarray:
        """Absolute coordinates of arc ``index`` (``~i`` reversed)."""

        j = ~index if index < 0 else index
        decoded = self._arcs[j]
        if decoded is None:
            points = self._raw_arc(j)
            if self._scale is not None and len(points):
                points = np.cumsum(points, axis=0) * self._scale + self._translate
            decoded = self._arcs[j] = points
        return decoded[::-1] if index < 0 else decoded

    def arc_ends(self, index: int) -> tuple[tuple[float, float], tuple[float, float]]:
        points = self.arc(index)
        first, last = points[0], points[-1]
        return (float(first[0]), float(first[1])), (float(last[0]), float(last[1]))

    def is_empty_arc(self, index: int) -> bool:
        raw = self.topology["arcs"][~index if index < 0 else index]
        if len(raw) >= 3:
            return False
        if self._scale is None:
            return len(raw) < 2 or raw[0][:2] == raw[-1][:2]
        return len(raw) < 2 or (not raw[1][0] and not raw[1][1])

    def position(self, position: Sequence[float]) -> list[float]:
        point = np.asarray(position[:2], dtype=float)
        if self._scale is not None:
            point = point * self._scale + self._translate
        return point.tolist()

    def line(self, arcs: Iterable[int]) -> list[list[float]]:
        coordinates: list[list[float]] = []
        for index in arcs:
            points = self.arc(index).tolist()
            if coordinates:
                coordinates.pop()
            coordinates.extend(points)
        if len(coordinates) < 2 and coordinates:
            coordinates.append(list(coordinates[0]))
        return coordinates

    def ring(self, arcs: Iterable[int]) -> list[list[float]]:
        coordinates = self.line(arcs)
        while coordinates and len(coordinates) < 4:
            coordinates.append(list(coordinates[0]))
        return coordinates

    def geometry(self, obj: Geometry) -> dict[str, Any] | None:
        kind = obj.get("type")
        if kind is None:
            return None
        if kind == "GeometryCollection":
            return {
                "type": kind,
                "geometries": [g for g in map(self.geometry, obj.get("geometries", ())) if g],
            }
        if kind == "Point":
            coordinates: Any = self.position(obj["coordinates"])
        elif kind == "MultiPoint":
            coordinates = [self.position(p) for p in obj["coordinates"]]
        elif kind == "LineString":
            coordinates = self.line(obj["arcs"])
        elif kind == "MultiLineString":
            coordinates = [self.line(arcs) for arcs in obj["arcs"]]
        elif kind == "Polygon":
            coordinates = [self.ring(arcs) for arcs in obj["arcs"]]
        elif kind == "MultiPolygon":
            coordinates = [[self.ring(arcs) for arcs in polygon] for polygon in obj["arcs"]]
        else:
            raise TopologyError(f"Unsupported geometry type '{kind}'")
        return {"type": kind, "coordinates": coordinates}


def _object(topology: Mapping[str, Any], name: str) -> Geometry:
    try:
        return topology["objects"][name]
    except KeyError as exc:
        raise TopologyError(f"Topology has no object named '{name}'") from exc


def _feature(decoder: _Decoder, obj: Geometry) -> dict[str, Any]:
    feature: dict[str, Any] = {
        "type": "Feature",
        "properties": obj.get("properties") or {},
        "geometry": decoder.geometry(obj),
    }
    if "id" in obj:
        feature["id"] = obj["id"]
    return feature


def feature(topology: Mapping[str, Any], name: str) -> dict[str, Any]:
    """GeoJSON for the named object.

    A ``GeometryCollection`` becomes a ``FeatureCollection`` with one feature
    per member geometry; anything else becomes a single ``Feature``.
    """

    obj = _object(topology, name)
    decoder = _Decoder(topology)
    if obj.get("type") == "GeometryCollection":
        return {
            "type": "FeatureCollection",
            "features": [_feature(decoder, g) for g in obj.get("geometries", ())],
        }
    return _feature(decoder, obj)


def _arc_references(obj: Geometry) -> dict[int, list[tuple[int, Geometry]]]:
    """Map every arc to the ``(signed index, geometry)`` pairs that use it."""

    references: dict[int, list[tuple[int, Geometry]]] = defaultdict(list)

    def _collect(arcs: Any, geometry: Geometry, depth: int) -> None:
        if depth == 0:
            for index in arcs:
                references[~index if index < 0 else index].append((index, geometry))
            return
        for nested in arcs:
            _collect(nested, geometry, depth - 1)

    def _walk(geometry: Geometry) -> None:
        kind = geometry.get("type")
        if kind == "GeometryCollection":
            for member in geometry.get("geometries", ()):
                _walk(member)
        elif kind == "LineString":
            _collect(geometry["arcs"], geometry, 0)
        elif kind in ("MultiLineString", "Polygon"):
            _collect(geometry["arcs"], geometry, 1)
        elif kind == "MultiPolygon":
            _collect(geometry["arcs"], geometry, 2)

    _walk(obj)
    return references


@dataclass
class _Fragment:
    arcs: list[int]
    start: tuple[float, float]
    end: tuple[float, float]


def _stitch(decoder: _Decoder, arcs: list[int]) -> list[list[int]]:
    """Join arcs that share endpoints into as few continuous lines as possible."""

    arcs = list(arcs)
    # Degenerate arcs go first so that longer arcs can absorb them.
    empty = [i for i in arcs if decoder.is_empty_arc(i)]
    arcs = empty + [i for i in arcs if not decoder.is_empty_arc(i)]

    by_start: dict[tuple[float, float], _Fragment] = {}
    by_end: dict[tuple[float, float], _Fragment] = {}

    for index in arcs:
        start, end = decoder.arc_ends(index)
        fragment = by_end.pop(start, None)
        if fragment is not None:
            by_start.pop(fragment.start, None)
            fragment.arcs.append(index)
            fragment.end = end
            following = by_start.pop(end, None)
            if following is not None and following is not fragment:
                by_end.pop(following.end, None)
                fragment = _Fragment(fragment.arcs + following.arcs, fragment.start, following.end)
            by_start[fragment.start] = by_end[fragment.end] = fragment
            continue

        fragment = by_start.pop(end, None)
        if fragment is not None:
            by_end.pop(fragment.end, None)
            fragment.arcs.insert(0, index)
            fragment.start = start
            preceding = by_end.pop(start, None)
            if preceding is not None and preceding is not fragment:
                by_start.pop(preceding.start, None)
                fragment = _Fragment(preceding.arcs + fragment.arcs, preceding.start, fragment.end)
            by_start[fragment.start] = by_end[fragment.end] = fragment
            continue

        fragment = _Fragment([index], start, end)
        by_start[start] = by_end[end] = fragment

    fragments: list[list[int]] = []
    seen: set[int] = set()
    for fragment in [*by_end.values(), *by_start.values()]:
        if id(fragment) in seen:
            continue
        seen.add(id(fragment))
        fragments.append(fragment.arcs)

    # Fragments displaced from both indexes by a shared node still get drawn.
    stitched = {~i if i < 0 else i for arcs_ in fragments for i in arcs_}
    fragments.extend([i] for i in arcs if (~i if i < 0 else i) not in stitched)
    return fragments


def mesh(
    topology: Mapping[str, Any],
    name: str | None = None,
    filter: MeshFilter | None = None,
) -> dict[str, Any]:
    """``MultiLineString`` of the arcs used by the named object.

    Each arc is emitted once even when several geometries share it. When
    ``filter`` is given it receives the first and last geometry using an arc
    (the same geometry twice for an exterior arc) and decides whether the arc
    is kept; ``lambda a, b: a is not b`` keeps only shared interior borders.
    Without a name, every arc of the topology is included.
    """

    decoder = _Decoder(topology)
    if name is None:
        selected = list(range(len(topology.get("arcs", ()))))
    else:
        references = _arc_references(_object(topology, name))
        selected = []
        for arc_index in sorted(references):
            uses = references[arc_index]
            if filter is None or filter(uses[0][1], uses[-1][1]):
                selected.append(uses[0][0])

    return {
        "type": "MultiLineString",
        "coordinates": [decoder.line(arcs) for arcs in _stitch(decoder, selected)],
    }


def different_geometries(a: Geometry, b: Geometry) -> bool:
    """Mesh filter that keeps arcs shared by two distinct geometries."""
    return a is not b


__all__ = [
    "different_geometries",
    "feature",
    "mesh",
    "normalize_feature_id",
]

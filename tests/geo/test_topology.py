from __future__ import annotations

import itertools
import random

import pytest

from salarymap.domain import TopologyError
from salarymap.geo.topology import different_geometries, feature, mesh, normalize_feature_id


def test_feature_decodes_shared_and_reversed_arcs(topology) -> None:
    states = feature(topology, "states")

    assert states["type"] == "FeatureCollection"
    assert [f["id"] for f in states["features"]] == [20, 31]
    west, east = (f["geometry"]["coordinates"][0] for f in states["features"])
    assert west == [[-98, 38], [-98, 40], [-100, 40], [-100, 38], [-98, 38]]
    assert east == [[-98, 38], [-96, 38], [-96, 40], [-98, 40], [-98, 38]]


def test_feature_applies_quantization_transform() -> None:
    topology = {
        "type": "Topology",
        "transform": {"scale": [0.5, 0.5], "translate": [10, 20]},
        "arcs": [[[0, 0], [2, 0], [0, 3]]],
        "objects": {"line": {"type": "LineString", "arcs": [0]}},
    }

    line = feature(topology, "line")

    assert line["type"] == "Feature"
    assert line["geometry"]["coordinates"] == [[10, 20], [11, 20], [11, 21.5]]


def test_feature_rejects_unknown_object(topology) -> None:
    with pytest.raises(TopologyError):
        feature(topology, "nation")


def test_interior_mesh_keeps_only_shared_borders(topology) -> None:
    borders = mesh(topology, "states", different_geometries)

    assert borders["type"] == "MultiLineString"
    assert borders["coordinates"] == [[[-98, 38], [-98, 40]]]


def test_unfiltered_mesh_emits_each_arc_once(topology) -> None:
    borders = mesh(topology, "states")

    assert len(borders["coordinates"]) == 1
    line = borders["coordinates"][0]
    # Three arcs stitched end to end: 2 + 4 + 4 points minus the two joins.
    assert len(line) == 8
    assert line[0] == [-98, 38]


@pytest.mark.parametrize(("raw", "expected"), [("06001", 6001), (6001, 6001), (6001.0, 6001), ("CA", "CA")])
def test_feature_ids_compare_as_integers(raw, expected) -> None:
    assert normalize_feature_id(raw) == expected


def _chain_topology(segments, references) -> dict:
    return {
        "type": "Topology",
        "arcs": segments,
        "objects": {"border": {"type": "MultiLineString", "arcs": [[index] for index in references]}},
    }


_CHAIN = [[[0, 0], [1, 0]], [[1, 0], [2, 0]], [[2, 0], [3, 0]], [[3, 0], [4, 0]]]


@pytest.mark.parametrize("order", list(itertools.permutations(range(4))))
def test_mesh_stitches_a_shuffled_chain_into_one_line(order) -> None:
    segments = [_CHAIN[i] for i in order]
    references = list(range(4))
    random.Random(sum(order)).shuffle(references)

    borders = mesh(_chain_topology(segments, references), "border")

    assert borders["coordinates"] == [[[0, 0], [1, 0], [2, 0], [3, 0], [4, 0]]]


def test_mesh_stitches_reversed_arc_references() -> None:
    # Arcs 1 and 3 are stored east to west and referenced reversed.
    segments = [_CHAIN[0], _CHAIN[1][::-1], _CHAIN[2], _CHAIN[3][::-1]]

    borders = mesh(_chain_topology(segments, [~3, 2, 0, ~1]), "border")

    assert borders["coordinates"] == [[[0, 0], [1, 0], [2, 0], [3, 0], [4, 0]]]


@pytest.mark.parametrize("order", list(itertools.permutations(range(4))))
def test_mesh_closes_a_shuffled_ring(order) -> None:
    square = [[[0, 0], [1, 0]], [[1, 0], [1, 1]], [[1, 1], [0, 1]], [[0, 1], [0, 0]]]
    segments = [square[i] for i in order]

    borders = mesh(_chain_topology(segments, range(4)), "border")

    assert len(borders["coordinates"]) == 1
    ring = borders["coordinates"][0]
    assert len(ring) == 5
    assert ring[0] == ring[-1]
    assert sorted(map(tuple, ring[:-1])) == [(0, 0), (0, 1), (1, 0), (1, 1)]

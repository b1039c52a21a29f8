from __future__ import annotations

import math

import pytest

from salarymap.domain import UnknownStateError
from salarymap.geo.projection import AlbersUsa, GeoPath, build_projection
from salarymap.geo.topology import feature


def _state(topology, state_id):
    return next(f for f in feature(topology, "states")["features"] if f["id"] == state_id)


def test_lower48_center_lands_on_translate() -> None:
    projection = AlbersUsa(scale=1000, translate=(480, 250))

    x, y = projection(-96.6, 38.7)

    assert x == pytest.approx(480)
    assert y == pytest.approx(250)


def test_north_is_up_and_east_is_right() -> None:
    projection = AlbersUsa(scale=1000, translate=(0, 0))

    west = projection(-100, 39)
    east = projection(-95, 39)
    north = projection(-98, 42)
    south = projection(-98, 36)

    assert west[0] < east[0]
    assert north[1] < south[1]


def test_insets_draw_alaska_and_hawaii_left_of_center() -> None:
    projection = AlbersUsa(scale=1000, translate=(480, 250))

    anchorage = projection(-149.9, 61.2)
    honolulu = projection(-157.86, 21.3)

    assert anchorage is not None and anchorage[0] < 480
    assert honolulu is not None and honolulu[0] < 480
    assert projection(2.35, 48.85) is None


def test_geo_path_renders_closed_rings(topology) -> None:
    path = GeoPath(AlbersUsa(scale=650, translate=(250, 250)))

    d = path(_state(topology, 20))

    assert d.startswith("M")
    assert d.endswith("Z")
    assert d.count("L") == 3


def test_unzoomed_projection_uses_base_scale(topology, state_names) -> None:
    path = build_projection(500, 400, None, topology, state_names)

    assert path.projection.scale == pytest.approx(500 * 1.3)
    assert path.projection.translate == (250, 200)


def test_zoom_centers_the_selected_state(topology, state_names) -> None:
    path = build_projection(500, 500, "ks", topology, state_names)

    assert path.projection.scale == pytest.approx(500 * 4.5)
    cx, cy = path.centroid(_state(topology, 20))
    assert cx == pytest.approx(250, abs=1e-6)
    assert cy == pytest.approx(250, abs=1e-6)


def test_projection_is_reused_for_identical_inputs(topology, state_names) -> None:
    first = build_projection(500, 500, "NE", topology, state_names)

    assert build_projection(500, 500, "ne", topology, state_names) is first
    assert build_projection(500, 500, "KS", topology, state_names) is not first


def test_unknown_state_falls_back_to_unzoomed_map(topology, state_names) -> None:
    path = build_projection(500, 500, "CA", topology, state_names)

    assert path.projection.scale == pytest.approx(500 * 1.3)
    assert path.projection.translate == (250, 250)


def test_unknown_state_raises_without_fallback(topology, state_names) -> None:
    with pytest.raises(UnknownStateError) as excinfo:
        build_projection(500, 500, "CA", topology, state_names, fallback=False)

    assert excinfo.value.code == "CA"


def test_centroid_of_nothing_is_nan() -> None:
    path = GeoPath(AlbersUsa())

    cx, cy = path.centroid({"type": "FeatureCollection", "features": []})

    assert math.isnan(cx) and math.isnan(cy)

"""Map projection and TopoJSON decoding."""

from .projection import AlbersUsa, GeoPath, build_projection
from .topology import feature, mesh

__all__ = ["AlbersUsa", "GeoPath", "build_projection", "feature", "mesh"]

"""Discrete color scale for county values."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Sequence

import numpy as np

from salarymap.domain import CountyValue

# Sequential blues, light to dark; bucket 0 holds the lowest values.
CHOROPLETH_COLORS: tuple[str, ...] = (
    "rgb(247,251,255)",
    "rgb(222,235,247)",
    "rgb(198,219,239)",
    "rgb(158,202,225)",
    "rgb(107,174,214)",
    "rgb(66,146,198)",
    "rgb(33,113,181)",
    "rgb(8,81,156)",
    "rgb(8,48,107)",
)
BLANK_COLOR = "rgb(240,240,240)"
BUCKETS = len(CHOROPLETH_COLORS)


@dataclass(frozen=True, slots=True)
class QuantizeScale:
    """Split ``[low, high]`` into equal-width buckets numbered ``0..buckets-1``.

    Values below the domain fall in bucket 0 and values above it in the last
    bucket. A value equal to a threshold belongs to the upper bucket.
    """

    low: float = 0.0
    high: float = 1.0
    buckets: int = BUCKETS

    @property
    def domain(self) -> tuple[float, float]:
        return (self.low, self.high)

    @property
    def thresholds(self) -> np.ndarray:
        step = (self.high - self.low) / self.buckets
        return self.low + step * np.arange(1, self.buckets)

    def __call__(self, value: float) -> int:
        return int(np.searchsorted(self.thresholds, value, side="right"))

    def bucket_many(self, values: Iterable[float]) -> np.ndarray:
        return np.searchsorted(self.thresholds, np.fromiter(values, dtype=float), side="right")


def quantile(values: Sequence[float], p: float) -> float | None:
    """``p``-quantile with linear interpolation between closest ranks."""

    if len(values) == 0:
        return None
    return float(np.quantile(np.asarray(values, dtype=float), p))


@lru_cache(maxsize=32)
def _scale_for(values: tuple[float, ...], low_q: float, high_q: float) -> QuantizeScale:
    if not values:
        return QuantizeScale()
    return QuantizeScale(low=quantile(values, low_q), high=quantile(values, high_q))


def build_quantize_scale(
    values: Sequence[CountyValue],
    *,
    low_quantile: float = 0.15,
    high_quantile: float = 0.85,
) -> QuantizeScale:
    """Scale whose domain is trimmed to the given quantiles of ``values``.

    Trimming pushes outliers into the end buckets so the middle of the range
    gets more contrast. Without values the scale keeps the ``[0, 1]`` domain.
    Scales are cached per value series.
    """

    series = tuple(value.value for value in values)
    return _scale_for(series, low_quantile, high_quantile)


def county_color(value: float | None, scale: QuantizeScale) -> tuple[str, int | None]:
    """Fill color and bucket for a county; missing values get the blank color."""

    if value is None:
        return BLANK_COLOR, None
    bucket = scale(value)
    return CHOROPLETH_COLORS[bucket], bucket


__all__ = [
    "BLANK_COLOR",
    "BUCKETS",
    "CHOROPLETH_COLORS",
    "QuantizeScale",
    "build_quantize_scale",
    "county_color",
    "quantile",
]

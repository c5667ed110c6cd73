"""Geodesic helpers for scale bars."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Protocol, Sequence

from .util import format_number


METERS_PER_MILE = 1609.344
SCALE_BAR_BEARING_DEG = 90.0


class PixelProjection(Protocol):
    def __call__(self, point: Sequence[float]) -> tuple[float, float] | None: ...

    def invert(self, pixel: Sequence[float]) -> tuple[float, float] | None: ...


def destination_point(
    lon: float,
    lat: float,
    bearing_deg: float,
    distance_miles: float,
) -> tuple[float, float]:
    """Point reached after travelling `distance_miles` along a geodesic."""
    geod = _require_geod()
    end_lon, end_lat, _ = geod.fwd(lon, lat, bearing_deg, distance_miles * METERS_PER_MILE)
    return (float(end_lon), float(end_lat))


def geodesic_distance_miles(a: Sequence[float], b: Sequence[float]) -> float:
    geod = _require_geod()
    _, _, dist_m = geod.inv(float(a[0]), float(a[1]), float(b[0]), float(b[1]))
    return float(dist_m) / METERS_PER_MILE


def calculate_scale_bar_end_point(
    projection: PixelProjection,
    start: Sequence[float],
    distance_miles: float,
) -> tuple[float, float]:
    """Pixel endpoint `distance_miles` east of `start`, measured on the ground.

    The start pixel is inverted to lon/lat, moved along the ellipsoid and
    projected back, so the bar length follows the local map scale.
    """
    start_geo = projection.invert(start)
    if start_geo is None:
        raise ValueError(f"Scale bar start {tuple(start)} does not invert to a geographic point")
    end_geo = destination_point(start_geo[0], start_geo[1], SCALE_BAR_BEARING_DEG, distance_miles)
    end = projection(end_geo)
    if end is None:
        raise ValueError(f"Scale bar end {end_geo} falls outside the projection")
    return end


def scale_bar_label(distance: float) -> str:
    unit = "mile" if distance == 1 else "miles"
    return f"{format_number(distance)} {unit}"


@lru_cache(maxsize=1)
def _require_geod() -> Any:
    try:
        from pyproj import Geod
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for geodesic distance calculations") from exc
    return Geod(ellps="WGS84")

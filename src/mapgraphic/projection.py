"""Cartographic projections with d3-style pixel scale, translate and center."""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Sequence


_SOURCE_CRS = "+proj=longlat +R=1 +no_defs"


@dataclass(frozen=True, slots=True)
class ProjectionSpec:
    """Named PROJ definition evaluated on the unit sphere.

    `proj4` must not carry its own ellipsoid; the radius is pinned to 1 so
    that `scale` has the same meaning as a d3 projection scale.
    """

    name: str
    proj4: str

    def build(
        self,
        *,
        scale: float,
        translate: tuple[float, float],
        center: tuple[float, float] = (0.0, 0.0),
    ) -> Projection:
        return Projection(self, scale=scale, translate=translate, center=center)


class Projection:
    """Maps lon/lat degrees to SVG pixels and back."""

    def __init__(
        self,
        spec: ProjectionSpec,
        *,
        scale: float,
        translate: tuple[float, float],
        center: tuple[float, float],
    ) -> None:
        self.spec = spec
        self.scale = float(scale)
        self.translate = (float(translate[0]), float(translate[1]))
        self.center = (float(center[0]), float(center[1]))
        self._transformer = _require_transformer(spec.proj4)
        cx, cy = self._transformer.transform(self.center[0], self.center[1])
        if not (math.isfinite(cx) and math.isfinite(cy)):
            raise ValueError(
                f"Projection center {self.center} is outside the domain of '{spec.name}'"
            )
        self._origin = (float(cx), float(cy))

    def __call__(self, point: Sequence[float]) -> tuple[float, float] | None:
        """Project `(lon, lat)`; None when the point falls outside the projection."""
        x, y = self._transformer.transform(float(point[0]), float(point[1]))
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
        return (
            self.translate[0] + self.scale * (x - self._origin[0]),
            self.translate[1] - self.scale * (y - self._origin[1]),
        )

    def invert(self, pixel: Sequence[float]) -> tuple[float, float] | None:
        x = (float(pixel[0]) - self.translate[0]) / self.scale + self._origin[0]
        y = (self.translate[1] - float(pixel[1])) / self.scale + self._origin[1]
        lon, lat = self._transformer.transform(x, y, direction=_inverse_direction())
        if not (math.isfinite(lon) and math.isfinite(lat)):
            return None
        return (float(lon), float(lat))

    def __repr__(self) -> str:
        return (
            f"Projection({self.spec.name!r}, scale={self.scale:.3f}, "
            f"translate={self.translate}, center={self.center})"
        )


@lru_cache(maxsize=16)
def _require_transformer(proj4: str) -> Any:
    try:
        from pyproj import CRS, Transformer
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for map projections") from exc
    target = CRS.from_proj4(f"{proj4} +R=1 +units=m +no_defs")
    return Transformer.from_crs(CRS.from_proj4(_SOURCE_CRS), target, always_xy=True)


def _inverse_direction() -> Any:
    from pyproj.enums import TransformDirection

    return TransformDirection.INVERSE

"""SVG path data from shapely geometries under a pixel projection."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence

from .util import format_number


Projector = Callable[[Sequence[float]], "tuple[float, float] | None"]

_GRATICULE_STEP_DEG = 10.0
_GRATICULE_MAJOR_STEP_DEG = 90.0
_GRATICULE_MINOR_LAT = 80.0
_GRATICULE_MAJOR_LAT = 90.0 - 1e-6
_GRATICULE_PRECISION_DEG = 2.5


def format_coord(value: float) -> str:
    return format_number(round(value, 2))


def format_point(point: Sequence[float]) -> str:
    return f"{format_coord(point[0])},{format_coord(point[1])}"


class PathGenerator:
    """Callable turning a geometry into an SVG `d` attribute.

    Points become circles of `point_radius` pixels. Vertices that fall
    outside the projection split the line they belong to.
    """

    def __init__(self, projection: Projector, *, point_radius: float = 4.5) -> None:
        self.projection = projection
        self.point_radius = float(point_radius)

    def __call__(self, geometry: Any) -> str:
        if geometry is None or geometry.is_empty:
            return ""
        parts: list[str] = []
        self._append(parts, geometry)
        return "".join(parts)

    def _append(self, parts: list[str], geometry: Any) -> None:
        kind = geometry.geom_type
        if kind == "Point":
            self._append_point(parts, geometry.coords[0])
        elif kind in {"LineString", "LinearRing"}:
            self._append_line(parts, geometry.coords, closed=False)
        elif kind == "Polygon":
            self._append_line(parts, geometry.exterior.coords, closed=True)
            for ring in geometry.interiors:
                self._append_line(parts, ring.coords, closed=True)
        elif kind in {"MultiPoint", "MultiLineString", "MultiPolygon", "GeometryCollection"}:
            for member in geometry.geoms:
                self._append(parts, member)
        else:
            raise ValueError(f"Unsupported geometry type '{kind}'")

    def _append_point(self, parts: list[str], coord: Sequence[float]) -> None:
        projected = self.projection(coord)
        if projected is None:
            return
        r = format_coord(self.point_radius)
        parts.append(
            f"M{format_point(projected)}"
            f"m0,{r}"
            f"a{r},{r} 0 1,1 0,{format_coord(-2 * self.point_radius)}"
            f"a{r},{r} 0 1,1 0,{format_coord(2 * self.point_radius)}"
            "Z"
        )

    def _append_line(self, parts: list[str], coords: Iterable[Sequence[float]], *, closed: bool) -> None:
        # A ring repeats its first vertex; Z closes it instead.
        points = list(coords)
        if closed and len(points) > 1 and tuple(points[0]) == tuple(points[-1]):
            points = points[:-1]
        segment: list[tuple[float, float]] = []
        broken = False
        for coord in points:
            projected = self.projection(coord)
            if projected is None:
                broken = True
                self._flush(parts, segment, closed=False)
                segment = []
                continue
            segment.append(projected)
        self._flush(parts, segment, closed=closed and not broken)

    @staticmethod
    def _flush(parts: list[str], segment: list[tuple[float, float]], *, closed: bool) -> None:
        if not segment:
            return
        parts.append("M" + "L".join(format_point(p) for p in segment))
        if closed:
            parts.append("Z")


def graticule_lines() -> Any:
    """Meridians and parallels every 10 degrees as one MultiLineString."""
    from shapely.geometry import MultiLineString

    lines: list[list[tuple[float, float]]] = []
    lon = -180.0
    while lon < 180.0:
        major = abs(lon % _GRATICULE_MAJOR_STEP_DEG) < 1e-9
        lat_extent = _GRATICULE_MAJOR_LAT if major else _GRATICULE_MINOR_LAT
        lines.append([(lon, lat) for lat in _sample(-lat_extent, lat_extent)])
        lon += _GRATICULE_STEP_DEG

    lat = -_GRATICULE_MINOR_LAT
    while lat <= _GRATICULE_MINOR_LAT:
        lines.append([(lon_i, lat) for lon_i in _sample(-180.0, 180.0)])
        lat += _GRATICULE_STEP_DEG
    return MultiLineString(lines)


def _sample(start: float, stop: float) -> list[float]:
    values: list[float] = []
    current = start
    while current < stop:
        values.append(current)
        current += _GRATICULE_PRECISION_DEG
    values.append(stop)
    return values

"""Geography document loading and TopoJSON decoding."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

import requests

from .models import Feature, FeatureCollection, GeoData, freeze_geodata


_LOGGER = logging.getLogger("mapgraphic.topology")

_GEOMETRY_TYPES = frozenset(
    {
        "Point",
        "MultiPoint",
        "LineString",
        "MultiLineString",
        "Polygon",
        "MultiPolygon",
        "GeometryCollection",
    }
)

Position = list[float]


class TopologyError(ValueError):
    """Raised when the geography document cannot be fetched or decoded."""


def is_remote(source: str | Path) -> bool:
    return str(source).startswith(("http://", "https://"))


def fetch_document(
    source: str | Path,
    *,
    timeout_s: float = 30.0,
    user_agent: str = "mapgraphic",
) -> Mapping[str, Any]:
    """Read the geography document from a local path or a single HTTP GET."""
    if is_remote(source):
        with requests.Session() as session:
            session.headers.update({"User-Agent": user_agent})
            try:
                response = session.get(str(source), timeout=timeout_s)
                response.raise_for_status()
                payload = response.json()
            except requests.RequestException as exc:
                raise TopologyError(f"Failed fetching geography document {source}: {exc}") from exc
            except ValueError as exc:
                raise TopologyError(f"Geography document {source} is not valid JSON: {exc}") from exc
    else:
        path = Path(source)
        if not path.exists():
            raise TopologyError(f"Geography document not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as fh:
                payload = json.load(fh)
        except json.JSONDecodeError as exc:
            raise TopologyError(f"Geography document {path} is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise TopologyError(f"Failed reading geography document {path}: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise TopologyError("Geography document must be a JSON object")
    return payload


def load_geodata(
    source: str | Path,
    *,
    timeout_s: float = 30.0,
    user_agent: str = "mapgraphic",
) -> GeoData:
    """Fetch and decode every object group of a TopoJSON document."""
    document = fetch_document(source, timeout_s=timeout_s, user_agent=user_agent)
    geodata = decode_topology(document)
    for name, collection in geodata.items():
        _LOGGER.info("Decoded group '%s' with %d features", name, len(collection))
    return geodata


def decode_topology(document: Mapping[str, Any]) -> GeoData:
    objects = document.get("objects")
    if not isinstance(objects, Mapping):
        raise TopologyError("Topology is missing an 'objects' mapping")
    arcs_raw = document.get("arcs")
    if not isinstance(arcs_raw, list):
        raise TopologyError("Topology is missing an 'arcs' list")

    decoder = _TopologyDecoder(arcs_raw, document.get("transform"))
    groups: dict[str, FeatureCollection] = {}
    for name, obj in objects.items():
        if not isinstance(obj, Mapping):
            raise TopologyError(f"Topology object '{name}' must be a mapping")
        groups[str(name)] = decoder.collection(obj, str(name))
    return freeze_geodata(groups)


class _TopologyDecoder:
    def __init__(self, arcs: Sequence[Any], transform: Any) -> None:
        self._position = _build_transform(transform)
        self._arcs = [self._decode_arc(arc, idx) for idx, arc in enumerate(arcs)]

    def collection(self, obj: Mapping[str, Any], name: str) -> FeatureCollection:
        if obj.get("type") == "GeometryCollection":
            members = obj.get("geometries")
            if not isinstance(members, list):
                raise TopologyError(f"GeometryCollection '{name}' is missing 'geometries'")
            return FeatureCollection(tuple(self.feature(member, name) for member in members))
        return FeatureCollection((self.feature(obj, name),))

    def feature(self, obj: Any, group: str) -> Feature:
        if not isinstance(obj, Mapping):
            raise TopologyError(f"Geometry in '{group}' must be a mapping")
        raw_id = obj.get("id")
        properties = obj.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise TopologyError(f"Properties in '{group}' must be a mapping")
        return Feature(
            id=None if raw_id is None else str(raw_id),
            properties=MappingProxyType(dict(properties)),
            geometry=self.geometry(obj, group),
        )

    def geometry(self, obj: Mapping[str, Any], group: str) -> Any:
        geojson = self._geojson(obj, group)
        if geojson is None:
            return None
        from shapely.geometry import shape

        return shape(geojson)

    def _geojson(self, obj: Mapping[str, Any], group: str) -> dict[str, Any] | None:
        kind = obj.get("type")
        if kind is None:
            return None
        if kind not in _GEOMETRY_TYPES:
            raise TopologyError(f"Unknown geometry type '{kind}' in '{group}'")
        if kind == "GeometryCollection":
            members = [self._geojson(m, group) for m in obj.get("geometries") or []]
            return {"type": kind, "geometries": [m for m in members if m is not None]}
        if kind == "Point":
            return {"type": kind, "coordinates": self._point(obj.get("coordinates"), group)}
        if kind == "MultiPoint":
            coords = obj.get("coordinates") or []
            return {"type": kind, "coordinates": [self._point(c, group) for c in coords]}

        arcs = obj.get("arcs")
        if not isinstance(arcs, list):
            raise TopologyError(f"{kind} in '{group}' is missing 'arcs'")
        if kind == "LineString":
            coordinates: Any = self._line(arcs)
        elif kind == "MultiLineString":
            coordinates = [self._line(a) for a in arcs]
        elif kind == "Polygon":
            coordinates = [self._ring(a) for a in arcs]
        else:
            coordinates = [[self._ring(r) for r in polygon] for polygon in arcs]
        return {"type": kind, "coordinates": coordinates}

    def _point(self, raw: Any, group: str) -> Position:
        if not isinstance(raw, list) or len(raw) < 2:
            raise TopologyError(f"Invalid point coordinates in '{group}'")
        return self._position(raw, None)

    def _line(self, arc_indexes: Sequence[int]) -> list[Position]:
        points: list[Position] = []
        for index in arc_indexes:
            arc = self._arc(index)
            if points:
                points.pop()
            points.extend(list(p) for p in arc)
        if not points:
            raise TopologyError("Line or ring references no arcs")
        if len(points) < 2:
            points.append(list(points[0]))
        return points

    def _ring(self, arc_indexes: Sequence[int]) -> list[Position]:
        points = self._line(arc_indexes)
        while len(points) < 4:
            points.append(list(points[0]))
        return points

    def _arc(self, index: Any) -> list[Position]:
        if not isinstance(index, int) or isinstance(index, bool):
            raise TopologyError(f"Arc index must be an integer, got {index!r}")
        position = ~index if index < 0 else index
        if position >= len(self._arcs):
            raise TopologyError(f"Arc index {index} out of range ({len(self._arcs)} arcs)")
        arc = self._arcs[position]
        return arc[::-1] if index < 0 else arc

    def _decode_arc(self, raw: Any, idx: int) -> list[Position]:
        if not isinstance(raw, list) or not raw:
            raise TopologyError(f"Arc {idx} must be a non-empty list of positions")
        state = [0.0, 0.0]
        out: list[Position] = []
        for pos in raw:
            if not isinstance(pos, list) or len(pos) < 2:
                raise TopologyError(f"Arc {idx} has an invalid position {pos!r}")
            out.append(self._position(pos, state))
        return out


def _build_transform(raw: Any) -> Callable[[Sequence[float], list[float] | None], Position]:
    """Position decoder; `state` carries delta accumulation for arcs."""
    if raw is None:
        return lambda pos, state: [float(pos[0]), float(pos[1])]
    if not isinstance(raw, Mapping):
        raise TopologyError("Topology 'transform' must be a mapping")
    try:
        sx, sy = (float(v) for v in raw["scale"])
        tx, ty = (float(v) for v in raw["translate"])
    except (KeyError, TypeError, ValueError) as exc:
        raise TopologyError(f"Invalid topology transform: {exc}") from exc

    def position(pos: Sequence[float], state: list[float] | None) -> Position:
        x, y = float(pos[0]), float(pos[1])
        if state is not None:
            state[0] += x
            state[1] += y
            x, y = state[0], state[1]
        return [x * sx + tx, y * sy + ty]

    return position

"""Domain models shared across the render pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from .projection import ProjectionSpec
from .textures import DEFAULT_TEXTURES, LineTexture


Nudge = tuple[float, float]

DEFAULT_MOBILE_BREAKPOINT = 600


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _require_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected numeric value for '{field_name}'")
    return float(value)


def parse_pair(value: Any, field_name: str) -> Nudge:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"Expected [dx, dy] pair for '{field_name}'")
    return (
        _require_number(value[0], f"{field_name}[0]"),
        _require_number(value[1], f"{field_name}[1]"),
    )


@dataclass(frozen=True, slots=True)
class Feature:
    """One decoded geographic feature."""

    id: str | None
    properties: Mapping[str, Any]
    geometry: Any

    @property
    def geometry_type(self) -> str | None:
        if self.geometry is None:
            return None
        return str(self.geometry.geom_type)


@dataclass(frozen=True, slots=True)
class FeatureCollection:
    features: tuple[Feature, ...] = ()

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    def __len__(self) -> int:
        return len(self.features)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(f.id for f in self.features if f.id is not None)


GeoData = Mapping[str, FeatureCollection]


def freeze_geodata(groups: Mapping[str, FeatureCollection]) -> GeoData:
    """Wrap decoded groups in a read-only mapping."""
    return MappingProxyType(dict(groups))


@dataclass(frozen=True, slots=True)
class LabelNudges:
    """Per-layer label offsets in geographic units, with an optional layer default."""

    by_id: Mapping[str, Nudge] = field(default_factory=dict)
    default: Nudge | None = None

    def lookup(self, feature_id: str | None) -> Nudge | None:
        if feature_id is not None:
            nudge = self.by_id.get(feature_id)
            if nudge is not None:
                return nudge
        return self.default

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], layer: str) -> LabelNudges:
        by_id: dict[str, Nudge] = {}
        default: Nudge | None = None
        for key, value in data.items():
            key_str = _require_str(str(key), f"label_nudges.{layer} key")
            nudge = parse_pair(value, f"label_nudges.{layer}.{key_str}")
            if key_str == "default":
                default = nudge
            else:
                by_id[key_str] = nudge
        return cls(by_id=by_id, default=default)


@dataclass(frozen=True, slots=True)
class SimpleLabel:
    """Always-present point label positioned by lat/lng."""

    lat: float
    lng: float
    label: str
    class_name: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SimpleLabel:
        lat = _require_number(data.get("lat"), "simple_labels[].lat")
        lng = _require_number(data.get("lng"), "simple_labels[].lng")
        if lat < -90.0 or lat > 90.0:
            raise ValueError("simple_labels[].lat must be between -90 and 90")
        if lng < -180.0 or lng > 180.0:
            raise ValueError("simple_labels[].lng must be between -180 and 180")
        class_raw = data.get("class", "")
        if class_raw is None:
            class_raw = ""
        if not isinstance(class_raw, str):
            raise ValueError("Expected string for 'simple_labels[].class'")
        return cls(
            lat=lat,
            lng=lng,
            label=_require_str(data.get("label"), "simple_labels[].label"),
            class_name=class_raw.strip(),
        )


@dataclass(frozen=True, slots=True)
class TypeConfig:
    """Declarative description of one map kind at a given width."""

    name: str
    projection: ProjectionSpec
    scale_factor: float
    centroid: tuple[float, float]
    dot_radius: float
    paths: tuple[str, ...]
    labels: tuple[str, ...] = ()
    label_nudges: Mapping[str, LabelNudges] = field(default_factory=dict)
    label_subs: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    scale_bar_distance: float | None = None
    aspect_ratio: float = 1.6
    graticules: bool = False
    outline_layer: str = "states"
    textures: Mapping[str, LineTexture] = field(default_factory=lambda: dict(DEFAULT_TEXTURES))

    def nudge(self, layer: str, feature_id: str | None) -> Nudge | None:
        nudges = self.label_nudges.get(layer)
        if nudges is None:
            return None
        return nudges.lookup(feature_id)

    def substitution(self, layer: str, feature_id: str | None) -> str | None:
        subs = self.label_subs.get(layer)
        if subs is None or feature_id is None:
            return None
        return subs.get(feature_id)

    @property
    def required_layers(self) -> tuple[str, ...]:
        ordered: list[str] = []
        for layer in (*self.paths, self.outline_layer, *self.labels):
            if layer not in ordered:
                ordered.append(layer)
        return tuple(ordered)


@dataclass(frozen=True, slots=True)
class InstanceConfig:
    """Per-render parameters."""

    container: str
    width: int
    data: GeoData
    simple_labels: tuple[SimpleLabel, ...] = ()


@dataclass(frozen=True, slots=True)
class RenderSnapshot:
    """Viewport-derived state for one render pass."""

    width: int
    is_mobile: bool
    type_config: TypeConfig

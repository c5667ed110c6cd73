"""Per-kind type configuration overrides loaded from YAML."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .map_types import MAP_TYPES, TypeConfigFactory
from .models import LabelNudges, TypeConfig, parse_pair


_SCALAR_FIELDS = ("scale_factor", "dot_radius", "aspect_ratio")
_KNOWN_FIELDS = frozenset(
    {*_SCALAR_FIELDS, "centroid", "scale_bar_distance", "graticules", "label_subs", "label_nudges"}
)


def _positive_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"Expected positive number for '{field_name}'")
    return float(value)


@dataclass(frozen=True, slots=True)
class MapTypeOverride:
    """Fields replaced on top of a kind's computed TypeConfig."""

    scalars: Mapping[str, float] = field(default_factory=dict)
    centroid: tuple[float, float] | None = None
    scale_bar_distance: float | None = None
    disable_scale_bar: bool = False
    graticules: bool | None = None
    label_subs: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    label_nudges: Mapping[str, LabelNudges] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], kind: str) -> MapTypeOverride:
        unknown = set(data) - _KNOWN_FIELDS
        if unknown:
            raise ValueError(f"Unknown override fields for '{kind}': {', '.join(sorted(map(str, unknown)))}")

        scalars = {
            name: _positive_float(data[name], f"{kind}.{name}")
            for name in _SCALAR_FIELDS
            if name in data
        }

        centroid = None
        if data.get("centroid") is not None:
            centroid = parse_pair(data["centroid"], f"{kind}.centroid")

        scale_bar_distance: float | None = None
        disable_scale_bar = False
        if "scale_bar_distance" in data:
            raw = data["scale_bar_distance"]
            if raw is None or raw is False:
                disable_scale_bar = True
            else:
                scale_bar_distance = _positive_float(raw, f"{kind}.scale_bar_distance")

        graticules = data.get("graticules")
        if graticules is not None and not isinstance(graticules, bool):
            raise ValueError(f"Expected bool for '{kind}.graticules'")

        subs_raw = data.get("label_subs") or {}
        if not isinstance(subs_raw, Mapping):
            raise ValueError(f"Expected mapping for '{kind}.label_subs'")
        label_subs: dict[str, dict[str, str]] = {}
        for layer, subs in subs_raw.items():
            if not isinstance(subs, Mapping):
                raise ValueError(f"Expected mapping for '{kind}.label_subs.{layer}'")
            label_subs[str(layer)] = {str(k): str(v) for k, v in subs.items()}

        nudges_raw = data.get("label_nudges") or {}
        if not isinstance(nudges_raw, Mapping):
            raise ValueError(f"Expected mapping for '{kind}.label_nudges'")
        label_nudges: dict[str, LabelNudges] = {}
        for layer, nudges in nudges_raw.items():
            if not isinstance(nudges, Mapping):
                raise ValueError(f"Expected mapping for '{kind}.label_nudges.{layer}'")
            label_nudges[str(layer)] = LabelNudges.from_mapping(nudges, f"{kind}.{layer}")

        return cls(
            scalars=scalars,
            centroid=centroid,
            scale_bar_distance=scale_bar_distance,
            disable_scale_bar=disable_scale_bar,
            graticules=graticules,
            label_subs=label_subs,
            label_nudges=label_nudges,
        )

    def apply(self, config: TypeConfig) -> TypeConfig:
        changes: dict[str, Any] = dict(self.scalars)
        if self.centroid is not None:
            changes["centroid"] = self.centroid
        if self.disable_scale_bar:
            changes["scale_bar_distance"] = None
        elif self.scale_bar_distance is not None:
            changes["scale_bar_distance"] = self.scale_bar_distance
        if self.graticules is not None:
            changes["graticules"] = self.graticules
        if self.label_subs:
            merged_subs = {layer: dict(subs) for layer, subs in config.label_subs.items()}
            for layer, subs in self.label_subs.items():
                merged_subs.setdefault(layer, {}).update(subs)
            changes["label_subs"] = merged_subs
        if self.label_nudges:
            merged_nudges = dict(config.label_nudges)
            for layer, nudges in self.label_nudges.items():
                base = merged_nudges.get(layer, LabelNudges())
                merged_nudges[layer] = LabelNudges(
                    by_id={**base.by_id, **nudges.by_id},
                    default=nudges.default if nudges.default is not None else base.default,
                )
            changes["label_nudges"] = merged_nudges
        return replace(config, **changes) if changes else config


def load_map_overrides(path: Path) -> dict[str, MapTypeOverride]:
    """Load optional overrides keyed by map kind."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in {path}")

    overrides: dict[str, MapTypeOverride] = {}
    for kind_raw, value in raw.items():
        if not isinstance(kind_raw, str):
            raise ValueError(f"Map override key must be a map kind string in {path}")
        kind = kind_raw.strip().casefold()
        if kind not in MAP_TYPES:
            raise ValueError(f"Unknown map kind '{kind_raw}' in {path}")
        if not isinstance(value, dict):
            raise ValueError(f"Map override value for {kind} must be a mapping in {path}")
        overrides[kind] = MapTypeOverride.from_mapping(value, kind)
    return overrides


def with_override(factory: TypeConfigFactory, override: MapTypeOverride | None) -> TypeConfigFactory:
    if override is None:
        return factory

    def configure(width: int, is_mobile: bool | None = None) -> TypeConfig:
        return override.apply(factory(width, is_mobile))

    return configure

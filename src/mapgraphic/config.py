"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .map_types import MAP_TYPES
from .models import DEFAULT_MOBILE_BREAKPOINT, SimpleLabel


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _optional_str(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    return _str(value, field_name)


def _int(value: Any, field_name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


def _optional_path(value: Any, field_name: str, root_dir: Path) -> Path | None:
    if value is None:
        return None
    return _path_from_cfg(value, field_name, root_dir)


def _source_from_cfg(value: Any, field_name: str, root_dir: Path) -> str:
    raw = _str(value, field_name)
    if raw.startswith(("http://", "https://")):
        return raw
    return str(_path_from_cfg(raw, field_name, root_dir))


@dataclass(frozen=True, slots=True)
class PathsConfig:
    geodata: str
    output_html: Path
    logs_dir: Path
    page_template: Path | None = None
    stylesheet: Path | None = None
    output_svg: Path | None = None
    output_png: Path | None = None
    map_overrides: Path | None = None

    @property
    def required_input_files(self) -> tuple[Path, ...]:
        candidates = (self.page_template, self.stylesheet)
        return tuple(p for p in candidates if p is not None)

    @property
    def build_directories(self) -> tuple[Path, ...]:
        outputs = (self.output_html, self.output_svg, self.output_png)
        dirs = [self.logs_dir, *(p.parent for p in outputs if p is not None)]
        return tuple(dict.fromkeys(dirs))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            geodata=_source_from_cfg(raw.get("geodata"), "paths.geodata", root_dir),
            output_html=_path_from_cfg(raw.get("output_html"), "paths.output_html", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir"), "paths.logs_dir", root_dir),
            page_template=_optional_path(raw.get("page_template"), "paths.page_template", root_dir),
            stylesheet=_optional_path(raw.get("stylesheet"), "paths.stylesheet", root_dir),
            output_svg=_optional_path(raw.get("output_svg"), "paths.output_svg", root_dir),
            output_png=_optional_path(raw.get("output_png"), "paths.output_png", root_dir),
            map_overrides=_optional_path(raw.get("map_overrides"), "paths.map_overrides", root_dir),
        )


@dataclass(frozen=True, slots=True)
class MapConfig:
    kind: str
    default_width: int
    mobile_breakpoint: int
    resize_throttle_ms: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> MapConfig:
        kind = _str(raw.get("kind"), "map.kind").casefold()
        if kind not in MAP_TYPES:
            raise ValueError("map.kind must be one of: " + ", ".join(sorted(MAP_TYPES)))
        default_width = _int(raw.get("default_width", 730), "map.default_width")
        mobile_breakpoint = _int(
            raw.get("mobile_breakpoint", DEFAULT_MOBILE_BREAKPOINT), "map.mobile_breakpoint"
        )
        resize_throttle_ms = _int(raw.get("resize_throttle_ms", 250), "map.resize_throttle_ms")
        if default_width < 1:
            raise ValueError("map.default_width must be >= 1")
        if mobile_breakpoint < 0:
            raise ValueError("map.mobile_breakpoint must be >= 0")
        if resize_throttle_ms < 0:
            raise ValueError("map.resize_throttle_ms must be >= 0")
        return cls(
            kind=kind,
            default_width=default_width,
            mobile_breakpoint=mobile_breakpoint,
            resize_throttle_ms=resize_throttle_ms,
        )


@dataclass(frozen=True, slots=True)
class PageConfig:
    title: str
    container: str
    content: str
    footer: str
    credit: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PageConfig:
        return cls(
            title=_str(raw.get("title", "Map"), "page.title"),
            container=_str(raw.get("container", "#graphic"), "page.container"),
            content=_str(raw.get("content", "#interactive-content"), "page.content"),
            footer=_str(raw.get("footer", ".footer"), "page.footer"),
            credit=_optional_str(raw.get("credit"), "page.credit") or "",
        )


@dataclass(frozen=True, slots=True)
class FetchConfig:
    request_timeout_s: float
    user_agent: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> FetchConfig:
        timeout = _float(raw.get("request_timeout_s", 30), "fetch.request_timeout_s")
        if timeout <= 0:
            raise ValueError("fetch.request_timeout_s must be > 0")
        return cls(
            request_timeout_s=timeout,
            user_agent=_str(raw.get("user_agent", "mapgraphic/0.1"), "fetch.user_agent"),
        )


def _simple_labels(value: Any) -> tuple[SimpleLabel, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError("Expected list for 'simple_labels'")
    labels: list[SimpleLabel] = []
    for idx, item in enumerate(value):
        labels.append(SimpleLabel.from_mapping(_mapping(item, f"simple_labels[{idx}]")))
    return tuple(labels)


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    paths: PathsConfig
    map: MapConfig
    page: PageConfig
    fetch: FetchConfig
    simple_labels: tuple[SimpleLabel, ...]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            map=MapConfig.from_mapping(_mapping(raw.get("map"), "map")),
            page=PageConfig.from_mapping(_mapping(raw.get("page", {}), "page")),
            fetch=FetchConfig.from_mapping(_mapping(raw.get("fetch", {}), "fetch")),
            simple_labels=_simple_labels(raw.get("simple_labels")),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
